"""Base repository with shared get-by-ID patterns.

Subclasses specify model_class, id_column, and not_found_error; the base
provides get_by_id.
"""

from typing import TypeVar, Generic, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import CatalogueWikiError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Catalogue)
        id_column:       Name of the primary-key column
        not_found_error: Exception class to raise from get_by_id
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[CatalogueWikiError]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        """Base query for get_by_id."""
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        col = getattr(self.model_class, self.id_column)
        entity = self._base_query().filter(col == entity_id).first()
        if not entity:
            raise self.not_found_error(entity_id)
        return entity
