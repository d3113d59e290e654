"""Service for managing repository upload tasks."""

import uuid
import logging
from typing import Optional, List
from sqlalchemy.orm import Session

from ..models import Task, TaskStatus
from ..repositories import CatalogueRepository, TaskRepository
from .archive_service import ArchiveService

logger = logging.getLogger(__name__)

# Longest failure reason stored on a task.
MAX_FAIL_REASON_CHARS = 2000


class TaskService:
    """
    Manages the lifecycle of upload tasks.

    A task is created when an archive arrives and tracks it through
    IN_PROGRESS -> COMPLETED | FAILED. COMPLETED means the catalogue was
    saved and detail generation dispatched; it says nothing about the
    outcome of individual sections.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = TaskRepository(db)

    def create(self, user_name: str, project_name: str) -> Task:
        """Create a new IN_PROGRESS task."""
        task = Task(
            task_id=str(uuid.uuid4()),
            user_name=user_name,
            project_name=project_name,
            status=TaskStatus.IN_PROGRESS.value,
        )
        self.repo.add(task)
        self.db.commit()
        self.db.refresh(task)

        logger.info(f"Created task {task.task_id} for {user_name}/{project_name}")
        return task

    def set_local_path(self, task_id: str, local_path: str) -> Task:
        task = self.repo.get_by_id(task_id)
        task.local_path = local_path
        self.db.commit()
        self.db.refresh(task)
        return task

    def complete(self, task_id: str) -> Task:
        """Mark a task as successfully completed."""
        task = self.repo.get_by_id(task_id)
        task.status = TaskStatus.COMPLETED.value
        task.fail_reason = None
        self.db.commit()
        self.db.refresh(task)

        logger.info(f"Task {task_id} completed")
        return task

    def fail(self, task_id: str, reason: str) -> Task:
        """Mark a task as failed. There is no automatic retry."""
        task = self.repo.get_by_id(task_id)
        task.status = TaskStatus.FAILED.value
        task.fail_reason = reason[:MAX_FAIL_REASON_CHARS]
        self.db.commit()
        self.db.refresh(task)

        logger.warning(f"Task {task_id} failed: {reason[:200]}")
        return task

    def get(self, task_id: str) -> Task:
        """Get a task. Raises TaskNotFoundError if missing."""
        return self.repo.get_by_id(task_id)

    def list_recent(self, limit: int = 20, user_name: Optional[str] = None) -> List[Task]:
        """Recent tasks, newest first."""
        return self.repo.list_recent(limit=limit, user_name=user_name)

    def delete(self, task_id: str, archive_service: Optional[ArchiveService] = None) -> None:
        """Delete a task, its catalogue rows, and its extracted repository."""
        task = self.repo.get_by_id(task_id)
        removed = CatalogueRepository(self.db).delete_for_task(task_id)
        self.repo.delete(task)
        self.db.commit()

        (archive_service or ArchiveService()).delete_project_directory(task.user_name, task.project_name)
        logger.info(f"Deleted task {task_id} and {removed} catalogue rows")
