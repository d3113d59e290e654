"""Business logic services."""

from .archive_service import ArchiveService
from .catalogue_service import CatalogueService
from .detail_generator import DetailGenerator
from .pipeline import CataloguePipeline
from .task_service import TaskService

__all__ = [
    "ArchiveService",
    "CatalogueService",
    "DetailGenerator",
    "CataloguePipeline",
    "TaskService",
]
