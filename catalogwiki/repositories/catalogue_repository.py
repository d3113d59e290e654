"""Catalogue repository: bulk insert and single-row updates.

These are the only two write operations the generation core relies on.
Neither commits; the calling service owns the transaction.
"""

from typing import Any, List, Optional

from ..models import Catalogue
from ..exceptions import CatalogueNotFoundError
from .base import BaseRepository


class CatalogueRepository(BaseRepository[Catalogue]):
    """Repository for catalogue rows."""

    model_class = Catalogue
    id_column = "catalogue_id"
    not_found_error = CatalogueNotFoundError

    def bulk_insert(self, records: List[Catalogue]) -> List[Catalogue]:
        """Stage all records for insertion in the current transaction."""
        self.db.add_all(records)
        self.db.flush()
        return records

    def update_by_id(
        self,
        catalogue_id: str,
        expected_status: Optional[str] = None,
        **fields: Any,
    ) -> int:
        """Update one row by primary key with a single UPDATE statement.

        With *expected_status*, the row is only touched while it still has
        that status, which keeps terminal states from being overwritten.
        Returns the number of rows matched (0 or 1).
        """
        query = self.db.query(Catalogue).filter(Catalogue.catalogue_id == catalogue_id)
        if expected_status is not None:
            query = query.filter(Catalogue.status == expected_status)
        return query.update(fields, synchronize_session=False)

    def list_for_task(self, task_id: str) -> List[Catalogue]:
        """All rows produced for a task, in insertion order."""
        return (
            self.db.query(Catalogue)
            .filter(Catalogue.task_id == task_id)
            .order_by(Catalogue.sort_order.asc())
            .all()
        )

    def delete_for_task(self, task_id: str) -> int:
        """Delete every row produced for a task. Returns the count removed."""
        return (
            self.db.query(Catalogue)
            .filter(Catalogue.task_id == task_id)
            .delete(synchronize_session=False)
        )
