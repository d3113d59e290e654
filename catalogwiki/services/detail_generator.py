"""
Concurrent per-section content generation.

Owns a bounded ThreadPoolExecutor dedicated to detail generation, separate
from the threads serving HTTP requests. dispatch() submits one unit per
child catalogue row and returns immediately; each unit calls the model,
then records COMPLETED or FAILED on its own row in its own session.

A unit never raises to its caller and never leaves its row IN_PROGRESS:
the terminal update is the last thing it does, whatever happened before.
Callers observe outcomes by re-reading the rows.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.logging_config import task_id_var
from ..exceptions import GenerationError
from ..models import Catalogue, CatalogueStatus
from ..repositories import CatalogueRepository
from ..schemas.outline import Outline
from .llm_client import TextGenerator
from .prompts import DETAIL_PROMPT, render

logger = logging.getLogger(__name__)

# Longest failure reason stored on a row.
MAX_FAIL_REASON_CHARS = 2000


@dataclasses.dataclass(frozen=True)
class DetailContext:
    """Repository-wide inputs shared by every unit of one dispatch."""
    repository_path: str
    file_tree: str
    outline: Outline


@dataclasses.dataclass(frozen=True)
class DetailJob:
    """Plain snapshot of a row, safe to hand to a worker thread."""
    catalogue_id: str
    name: str
    prompt: str
    task_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Catalogue) -> "DetailJob":
        return cls(
            catalogue_id=record.catalogue_id,
            name=record.name,
            prompt=record.prompt or "",
            task_id=record.task_id,
        )


def describe_failure(exc: BaseException) -> str:
    """Human-readable, length-bounded failure reason."""
    text = str(exc).strip() or type(exc).__name__
    if not isinstance(exc, GenerationError):
        text = f"{type(exc).__name__}: {text}"
    return text[:MAX_FAIL_REASON_CHARS]


class DetailGenerator:
    """Fans out detail generation for catalogue rows.

    Args:
        generator: Model collaborator with ``generate(prompt) -> str``.
        session_factory: Callable returning a new database Session. Each
            unit opens and closes its own.
        max_workers: Concurrent units. Defaults to ``DETAIL_MAX_WORKERS``.
    """

    def __init__(
        self,
        generator: TextGenerator,
        session_factory: Callable[[], Session],
        max_workers: Optional[int] = None,
    ) -> None:
        self._generator = generator
        self._session_factory = session_factory
        self.max_workers = max_workers or settings.detail_max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="catalogue-detail",
        )
        self._lock = threading.Lock()
        self._closed = False

    def dispatch(self, records: Iterable[Catalogue], context: DetailContext) -> List[Future]:
        """Submit one unit per child row. Top-level rows are skipped.

        Returns the futures without waiting on them. Each resolves to the
        CatalogueStatus that was written.
        """
        jobs = [DetailJob.from_record(r) for r in records if r.parent_catalogue_id is not None]
        outline_json = context.outline.model_dump_json()

        with self._lock:
            if self._closed:
                raise RuntimeError("DetailGenerator has been shut down")
            futures = [
                self._executor.submit(self.generate_one, job, context, outline_json)
                for job in jobs
            ]

        logger.info(
            "Dispatched %d detail generation units (max %d parallel)",
            len(futures), self.max_workers,
        )
        return futures

    @property
    def closed(self) -> bool:
        return self._closed

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with *wait*, block until running units finish."""
        with self._lock:
            self._closed = True
        logger.info("Shutting down detail generator (wait=%s)", wait)
        self._executor.shutdown(wait=wait)

    def generate_one(self, job: DetailJob, context: DetailContext, outline_json: str) -> CatalogueStatus:
        """Generate and persist content for a single row."""
        token = task_id_var.set(job.task_id or "")
        status = CatalogueStatus.FAILED
        content: Optional[str] = None
        reason: Optional[str] = None
        try:
            logger.info("Generating detail for %s", job.name, extra={"catalogue_id": job.catalogue_id})
            prompt = render(
                DETAIL_PROMPT,
                repository_location=context.repository_path,
                prompt=job.prompt,
                title=job.name,
                repository_files=context.file_tree,
                catalogue=outline_json,
            )
            result = self._generator.generate(prompt)
            if not result or not result.strip():
                raise GenerationError("Model returned empty content")
            content = result
            status = CatalogueStatus.COMPLETED
        except Exception as e:
            logger.exception("Detail generation failed for %s", job.name, extra={"catalogue_id": job.catalogue_id})
            reason = describe_failure(e)
        finally:
            status = self._save(job, status, content, reason)
            task_id_var.reset(token)
        return status

    def _save(
        self,
        job: DetailJob,
        status: CatalogueStatus,
        content: Optional[str],
        reason: Optional[str],
    ) -> CatalogueStatus:
        """Write the terminal status. A failed COMPLETED write falls back to FAILED."""
        try:
            self._write(job.catalogue_id, status, content, reason)
            logger.info(
                "Detail %s: %s", job.name, status.value,
                extra={"catalogue_id": job.catalogue_id},
            )
            return status
        except Exception as e:
            logger.exception("Failed to save %s status for %s", status.value, job.catalogue_id)
            if status is CatalogueStatus.FAILED:
                return CatalogueStatus.FAILED
            fallback_reason = describe_failure(e)
            try:
                self._write(
                    job.catalogue_id,
                    CatalogueStatus.FAILED,
                    None,
                    f"Failed to save generated content: {fallback_reason}"[:MAX_FAIL_REASON_CHARS],
                )
            except Exception:
                logger.exception("Failed to save FAILED status for %s", job.catalogue_id)
            return CatalogueStatus.FAILED

    def _write(
        self,
        catalogue_id: str,
        status: CatalogueStatus,
        content: Optional[str],
        reason: Optional[str],
    ) -> None:
        db = self._session_factory()
        try:
            matched = CatalogueRepository(db).update_by_id(
                catalogue_id,
                expected_status=CatalogueStatus.IN_PROGRESS.value,
                status=status.value,
                content=content,
                fail_reason=reason,
            )
            db.commit()
            if not matched:
                logger.warning("Catalogue %s was missing or no longer IN_PROGRESS", catalogue_id)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
