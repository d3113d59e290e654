"""Database models."""

from .task import Task, TaskStatus
from .catalogue import Catalogue, CatalogueStatus, DEPENDENT_FILE_SEPARATOR
from .chat_message import ChatMessage

__all__ = [
    "Task", "TaskStatus",
    "Catalogue", "CatalogueStatus", "DEPENDENT_FILE_SEPARATOR",
    "ChatMessage",
]
