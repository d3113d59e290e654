"""Catalogue model: one persisted node of a generated documentation outline."""

from enum import Enum

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ..database import Base


class CatalogueStatus(str, Enum):
    """Generation status of a catalogue node.

    IN_PROGRESS is the only initial state. COMPLETED and FAILED are terminal.
    """
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# Separator used to flatten dependent-file lists into a single column.
# A filename containing this character cannot be recovered on read.
DEPENDENT_FILE_SEPARATOR = ","


class Catalogue(Base):
    """
    A documentation section proposed by the model.

    Top-level rows (parent_catalogue_id is NULL) are containers. Child rows
    receive generated content and move IN_PROGRESS -> COMPLETED | FAILED
    exactly once.
    """

    __tablename__ = "catalogues"
    __table_args__ = (
        Index("ix_catalogues_task_id", "task_id"),
        Index("ix_catalogues_parent_catalogue_id", "parent_catalogue_id"),
    )

    # Primary key (UUID format)
    catalogue_id = Column(String(50), primary_key=True)

    # Back-reference to the top-level node; not an ownership relationship
    parent_catalogue_id = Column(String(50), nullable=True)

    # Task that produced this outline (nullable for outlines built outside a task)
    task_id = Column(String(50), ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=True)

    title = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    prompt = Column(Text, nullable=False, default="")

    # Position within the generation batch, parents before their children
    sort_order = Column(Integer, nullable=False, default=0)

    # Comma-joined list, see DEPENDENT_FILE_SEPARATOR
    dependent_file = Column(Text, nullable=False, default="")

    # Allowed values: CatalogueStatus
    status = Column(String(20), nullable=False, default=CatalogueStatus.IN_PROGRESS.value)
    content = Column(Text, nullable=True)
    fail_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def dependent_files(self) -> list[str]:
        """Split the stored dependent-file column back into a list."""
        if not self.dependent_file:
            return []
        return self.dependent_file.split(DEPENDENT_FILE_SEPARATOR)

    @property
    def is_container(self) -> bool:
        """Top-level rows group children and never receive content."""
        return self.parent_catalogue_id is None
