"""Data access repositories."""

from .base import BaseRepository
from .catalogue_repository import CatalogueRepository
from .task_repository import TaskRepository
from .chat_message_repository import ChatMessageRepository

__all__ = [
    "BaseRepository",
    "CatalogueRepository",
    "TaskRepository",
    "ChatMessageRepository",
]
