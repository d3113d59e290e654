"""Pydantic schemas for outline parsing and API validation."""

from .outline import Outline, OutlineNode
from .catalogue import CatalogueResponse, CatalogueSummary, CatalogueTreeNode
from .task import TaskResponse, TaskCreatedResponse
from .chat import ChatRequest, ChatResponse

__all__ = [
    "Outline",
    "OutlineNode",
    "CatalogueResponse",
    "CatalogueSummary",
    "CatalogueTreeNode",
    "TaskResponse",
    "TaskCreatedResponse",
    "ChatRequest",
    "ChatResponse",
]
