"""Task repository for database operations."""

from typing import List, Optional

from ..models import Task
from ..exceptions import TaskNotFoundError
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Repository for upload task rows."""

    model_class = Task
    id_column = "task_id"
    not_found_error = TaskNotFoundError

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self.db.flush()
        return task

    def list_recent(self, limit: int = 20, user_name: Optional[str] = None) -> List[Task]:
        """Most recent tasks first, optionally for a single user."""
        query = self.db.query(Task)
        if user_name:
            query = query.filter(Task.user_name == user_name)
        return query.order_by(Task.created_at.desc()).limit(limit).all()

    def delete(self, task: Task) -> None:
        self.db.delete(task)
        self.db.flush()
