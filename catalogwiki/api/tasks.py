"""Task endpoints: upload an archive and follow its catalogue generation.

Endpoints are thin; CataloguePipeline and TaskService do the work.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.catalogue import CatalogueTreeNode
from ..schemas.task import TaskCreatedResponse, TaskResponse
from ..services.archive_service import ArchiveService
from ..services.catalogue_service import CatalogueService, build_tree
from ..services.detail_generator import DetailGenerator
from ..services.llm_client import LlmClient
from ..services.pipeline import CataloguePipeline
from ..services.task_service import TaskService
from .deps import get_archive_service, get_detail_generator, get_llm_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("", response_model=TaskCreatedResponse, status_code=201)
def create_task(
    user_name: str = Form(...),
    project_name: str = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    llm_client: LlmClient = Depends(get_llm_client),
    detail_generator: DetailGenerator = Depends(get_detail_generator),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """Upload a zip archive of a repository.

    Extracts it, generates and saves the documentation outline, then starts
    section generation in the background. Returns once the outline is saved;
    poll the catalogue endpoint for per-section status.
    """
    logger.info(f"Upload received: {file.filename} for {user_name}/{project_name}")
    pipeline = CataloguePipeline(db, llm_client, detail_generator, archive_service)
    result = pipeline.run(file.file, user_name, project_name)

    return TaskCreatedResponse(
        task=TaskResponse.model_validate(result.task),
        local_path=result.local_path,
        catalogue=build_tree(result.build.records),
        dispatched=len(result.futures),
    )


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    user_name: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List recent tasks, optionally for a single user."""
    return TaskService(db).list_recent(limit=limit, user_name=user_name)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, db: Session = Depends(get_db)):
    """Get a specific task by ID."""
    return TaskService(db).get(task_id)


@router.get("/{task_id}/catalogue", response_model=List[CatalogueTreeNode])
def get_task_catalogue(task_id: str, db: Session = Depends(get_db)):
    """Catalogue tree for a task with the current status of every section."""
    TaskService(db).get(task_id)
    return CatalogueService(db).as_tree(task_id)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """Delete a task, its catalogue, and its extracted files."""
    TaskService(db).delete(task_id, archive_service)
    return Response(status_code=204)
