"""End-to-end catalogue generation for one uploaded archive.

    archive -> extract -> file tree -> model -> outline -> rows -> detail fan-out

Everything up to and including the bulk write runs synchronously in the
caller's thread; any failure there marks the task FAILED and propagates,
and no catalogue row exists. Detail generation is then dispatched and the
call returns without waiting for it.
"""

import dataclasses
import logging
import re
from concurrent.futures import Future
from typing import BinaryIO, List, Optional

from sqlalchemy.orm import Session

from ..core.logging_config import task_id_var
from ..models import Task
from .archive_service import ArchiveService
from .catalogue_service import CatalogueBuild, CatalogueService
from .detail_generator import DetailContext, DetailGenerator
from .file_tree import render_file_tree
from .llm_client import TextGenerator
from .outline_parser import parse_outline
from .prompts import CATALOGUE_PROMPT, OUTLINE_TAG, render
from .task_service import TaskService

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def extract_tagged_block(text: str, tag: str) -> str:
    """Return the content between ``<tag>`` and ``</tag>``.

    Falls back to the whole text when the tags are missing, so a bare JSON
    answer still reaches the parser. A surrounding Markdown code fence is
    removed.
    """
    if not text:
        return ""
    open_tag, close_tag = f"<{tag}>", f"</{tag}>"
    start = text.find(open_tag)
    end = text.rfind(close_tag)
    if start != -1 and end > start:
        block = text[start + len(open_tag):end]
    else:
        block = text
    block = block.strip()
    fenced = _CODE_FENCE.match(block)
    if fenced:
        block = fenced.group(1).strip()
    return block


@dataclasses.dataclass
class PipelineResult:
    task: Task
    local_path: str
    file_tree: str
    build: CatalogueBuild
    futures: List[Future]


class CataloguePipeline:
    """Runs one upload through ingestion, outline generation and fan-out.

    Args:
        db: Session for task and catalogue writes (request thread only).
        generator: Model collaborator used for the outline call.
        detail_generator: Owned pool that receives the child rows.
        archive_service: Extraction service; defaults to the configured base dir.
    """

    def __init__(
        self,
        db: Session,
        generator: TextGenerator,
        detail_generator: DetailGenerator,
        archive_service: Optional[ArchiveService] = None,
    ):
        self.db = db
        self.generator = generator
        self.detail_generator = detail_generator
        self.archive_service = archive_service or ArchiveService()
        self.tasks = TaskService(db)
        self.catalogues = CatalogueService(db)

    def run(self, archive_stream: BinaryIO, user_name: str, project_name: str) -> PipelineResult:
        # Reject bad identifiers and a stopped pool before anything is recorded.
        self.archive_service.project_path(user_name, project_name)
        if self.detail_generator.closed:
            raise RuntimeError("Detail generator has been shut down")

        task = self.tasks.create(user_name, project_name)
        token = task_id_var.set(task.task_id)
        try:
            build: Optional[CatalogueBuild] = None
            try:
                local_path = self.archive_service.extract(archive_stream, user_name, project_name)
                self.tasks.set_local_path(task.task_id, local_path)
                file_tree = render_file_tree(local_path)
                build = self.generate_catalogue(file_tree, local_path, task.task_id)
                futures = self.detail_generator.dispatch(
                    build.records,
                    DetailContext(repository_path=local_path, file_tree=file_tree, outline=build.outline),
                )
            except Exception as e:
                self.db.rollback()
                reason = getattr(e, "message", None) or str(e) or type(e).__name__
                if build is not None:
                    # Rows are committed but no unit was submitted for them.
                    self.catalogues.fail_pending(
                        [r.catalogue_id for r in build.children],
                        f"Detail generation was not dispatched: {reason}",
                    )
                self.tasks.fail(task.task_id, reason)
                raise

            task = self.tasks.complete(task.task_id)
        finally:
            task_id_var.reset(token)

        return PipelineResult(
            task=task,
            local_path=local_path,
            file_tree=file_tree,
            build=build,
            futures=futures,
        )

    def generate_catalogue(self, file_tree: str, local_path: str, task_id: Optional[str] = None) -> CatalogueBuild:
        """Ask the model for an outline, validate it, and persist the rows."""
        prompt = render(CATALOGUE_PROMPT, code_files=file_tree, repository_location=local_path)
        answer = self.generator.generate(prompt)
        logger.debug("Outline answer: %d chars", len(answer or ""))

        outline = parse_outline(extract_tagged_block(answer, OUTLINE_TAG))
        return self.catalogues.build(outline, task_id=task_id)
