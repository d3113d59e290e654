"""Shared FastAPI dependencies for collaborators owned by the application."""

from fastapi import Request

from ..services.archive_service import ArchiveService
from ..services.detail_generator import DetailGenerator
from ..services.llm_client import LlmClient


def get_llm_client(request: Request) -> LlmClient:
    """The model client built at startup."""
    return request.app.state.llm_client


def get_detail_generator(request: Request) -> DetailGenerator:
    """The detail generation pool built at startup."""
    return request.app.state.detail_generator


def get_archive_service() -> ArchiveService:
    return ArchiveService()
