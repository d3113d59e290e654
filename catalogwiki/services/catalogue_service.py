"""Catalogue service: turns a validated outline into persisted rows.

Owns the one bulk write of a generation batch and the read paths used by
the API. Detail generation lives in DetailGenerator; this module only
creates rows and reads them back.
"""

import dataclasses
import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import DatabaseError
from ..models import Catalogue, CatalogueStatus, DEPENDENT_FILE_SEPARATOR
from ..repositories import CatalogueRepository
from ..schemas.catalogue import CatalogueSummary, CatalogueTreeNode
from ..schemas.outline import Outline, OutlineNode

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class CatalogueBuild:
    """Result of build(): the outline that was persisted and its rows."""
    outline: Outline
    records: List[Catalogue]

    @property
    def parents(self) -> List[Catalogue]:
        return [r for r in self.records if r.parent_catalogue_id is None]

    @property
    def children(self) -> List[Catalogue]:
        return [r for r in self.records if r.parent_catalogue_id is not None]


def flatten_dependent_files(files: List[str]) -> str:
    """Join a dependent-file list for storage.

    Lossy when a filename itself contains the separator.
    """
    return DEPENDENT_FILE_SEPARATOR.join(files)


class CatalogueService:
    """Builds and reads catalogue trees."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogueRepository(db)

    def build(self, outline: Outline, task_id: Optional[str] = None) -> CatalogueBuild:
        """Create one row per outline node and persist them in a single commit.

        Every row starts IN_PROGRESS. Children reference their top-level
        row through parent_catalogue_id.

        Raises:
            DatabaseError: the bulk write failed; nothing was committed.
        """
        records: List[Catalogue] = []
        for item in outline.items:
            parent = self._new_record(item, None, task_id, len(records))
            records.append(parent)
            for child in item.children:
                records.append(self._new_record(child, parent.catalogue_id, task_id, len(records)))

        try:
            self.repo.bulk_insert(records)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to save catalogue (%d rows): %s", len(records), e)
            raise DatabaseError("Failed to save catalogue", original_error=e) from e

        logger.info(
            "Saved catalogue: %d rows (%d sections)",
            len(records), len(outline.items),
            extra={"task_id": task_id} if task_id else None,
        )
        return CatalogueBuild(outline=outline, records=records)

    def get(self, catalogue_id: str) -> Catalogue:
        """Get one row. Raises CatalogueNotFoundError if missing."""
        return self.repo.get_by_id(catalogue_id)

    def fail_pending(self, catalogue_ids: List[str], reason: str) -> int:
        """Mark rows that never reached a generation unit as FAILED.

        Only rows still IN_PROGRESS are touched. Returns the count updated.
        """
        updated = 0
        for catalogue_id in catalogue_ids:
            updated += self.repo.update_by_id(
                catalogue_id,
                expected_status=CatalogueStatus.IN_PROGRESS.value,
                status=CatalogueStatus.FAILED.value,
                fail_reason=reason,
            )
        self.db.commit()
        logger.warning("Marked %d undispatched catalogue rows FAILED", updated)
        return updated

    def list_for_task(self, task_id: str) -> List[Catalogue]:
        return self.repo.list_for_task(task_id)

    def as_tree(self, task_id: str) -> List[CatalogueTreeNode]:
        """Top-level rows with their children nested, in outline order."""
        return build_tree(self.list_for_task(task_id))

    @staticmethod
    def _new_record(
        node: OutlineNode,
        parent_id: Optional[str],
        task_id: Optional[str],
        position: int,
    ) -> Catalogue:
        return Catalogue(
            catalogue_id=str(uuid.uuid4()),
            parent_catalogue_id=parent_id,
            task_id=task_id,
            title=node.title,
            name=node.name,
            prompt=node.prompt,
            dependent_file=flatten_dependent_files(node.dependent_file),
            status=CatalogueStatus.IN_PROGRESS.value,
            sort_order=position,
        )


def build_tree(records: List[Catalogue]) -> List[CatalogueTreeNode]:
    """Nest child rows under their parents. Orphans are dropped."""
    nodes: dict[str, CatalogueTreeNode] = {}
    roots: List[CatalogueTreeNode] = []
    for record in records:
        if record.is_container:
            node = CatalogueTreeNode.model_validate(record)
            nodes[record.catalogue_id] = node
            roots.append(node)

    for record in records:
        if record.is_container:
            continue
        parent = nodes.get(record.parent_catalogue_id)
        if parent is None:
            logger.warning("Catalogue %s has unknown parent %s", record.catalogue_id, record.parent_catalogue_id)
            continue
        parent.children.append(CatalogueSummary.model_validate(record))
    return roots
