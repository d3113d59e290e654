"""Task model for tracking one archive upload through outline generation."""

from enum import Enum

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from ..database import Base


class TaskStatus(str, Enum):
    """Lifecycle of an upload task.

    COMPLETED means the catalogue was persisted and detail generation was
    dispatched; per-node outcomes live on the catalogue rows.
    """
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Task(Base):
    """
    Tracks an uploaded repository and its catalogue generation.

    Status transitions: IN_PROGRESS -> COMPLETED | FAILED
    """

    __tablename__ = "tasks"

    # Primary key (UUID format)
    task_id = Column(String(50), primary_key=True)

    project_name = Column(String(255), nullable=False)
    user_name = Column(String(255), nullable=False)

    # Where the archive was extracted: {base}/{user_name}/{project_name}
    local_path = Column(Text, nullable=True)

    # Allowed values: TaskStatus
    status = Column(String(20), nullable=False, default=TaskStatus.IN_PROGRESS.value)
    fail_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
