"""API routes."""

from .tasks import router as tasks_router
from .catalogues import router as catalogues_router
from .chat import router as chat_router

__all__ = [
    "tasks_router",
    "catalogues_router",
    "chat_router",
]
