"""Catalogue read endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.catalogue import CatalogueResponse
from ..services.catalogue_service import CatalogueService

router = APIRouter(prefix="/api/catalogues", tags=["catalogues"])


@router.get("/{catalogue_id}", response_model=CatalogueResponse)
def get_catalogue(catalogue_id: str, db: Session = Depends(get_db)):
    """Get one section, including its generated content or failure reason."""
    return CatalogueService(db).get(catalogue_id)
