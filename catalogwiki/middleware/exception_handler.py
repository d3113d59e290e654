"""Exception handler middleware for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import CatalogueWikiError

logger = logging.getLogger(__name__)


async def catalogue_exception_handler(request: Request, exc: CatalogueWikiError) -> JSONResponse:
    """
    Handle domain exceptions and return structured JSON responses.

    Args:
        request: FastAPI request object
        exc: CatalogueWikiError instance

    Returns:
        JSONResponse with error details
    """
    logger.error(
        f"CatalogueWikiError: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
