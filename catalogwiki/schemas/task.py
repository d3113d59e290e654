"""Task schemas."""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from .catalogue import CatalogueTreeNode


class TaskResponse(BaseModel):
    """Schema for task status."""
    task_id: str
    project_name: str
    user_name: str
    local_path: Optional[str] = None
    status: str
    fail_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskCreatedResponse(BaseModel):
    """Response after an archive upload was ingested and its outline persisted."""
    task: TaskResponse
    local_path: str
    catalogue: List[CatalogueTreeNode]
    dispatched: int
