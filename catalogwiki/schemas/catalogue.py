"""Catalogue response schemas."""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class CatalogueResponse(BaseModel):
    """Full catalogue row, including generated content."""
    catalogue_id: str
    parent_catalogue_id: Optional[str] = None
    task_id: Optional[str] = None
    title: str
    name: str
    prompt: str
    dependent_files: List[str] = []
    status: str
    content: Optional[str] = None
    fail_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CatalogueSummary(BaseModel):
    """Catalogue row without content, for tree listings."""
    catalogue_id: str
    title: str
    name: str
    status: str
    fail_reason: Optional[str] = None

    class Config:
        from_attributes = True


class CatalogueTreeNode(CatalogueSummary):
    """Top-level node with its children nested."""
    children: List[CatalogueSummary] = []
