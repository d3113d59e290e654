"""Custom exception hierarchy for catalogwiki."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error kinds shared by exceptions, results and API responses."""

    # Outline errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PARSE_ERROR = "PARSE_ERROR"

    # Ingestion errors
    PATH_TRAVERSAL = "PATH_TRAVERSAL"
    IO_ERROR = "IO_ERROR"

    # Model errors
    GENERATION_ERROR = "GENERATION_ERROR"

    # Lookup errors
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    CATALOGUE_NOT_FOUND = "CATALOGUE_NOT_FOUND"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class CatalogueWikiError(Exception):
    """
    Base exception for all catalogwiki errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ValidationError(CatalogueWikiError):
    """Input or outline failed a structural check."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class ParseError(CatalogueWikiError):
    """Model output is not well-formed structured data of the expected shape."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.PARSE_ERROR,
            status_code=422,
            details=details
        )


class PathTraversalError(CatalogueWikiError):
    """Archive entry would be written outside the destination directory."""

    def __init__(self, entry_name: str):
        super().__init__(
            f"Archive entry escapes destination directory: {entry_name}",
            ErrorCode.PATH_TRAVERSAL,
            status_code=400,
            details={"entry": entry_name}
        )


class ArchiveIOError(CatalogueWikiError):
    """Filesystem or extraction failure."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.IO_ERROR,
            status_code=500,
            details=details
        )


class GenerationError(CatalogueWikiError):
    """Model call failed or returned nothing usable."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.GENERATION_ERROR,
            status_code=502,
            details=details
        )


class TaskNotFoundError(CatalogueWikiError):
    """Task not found in database."""

    def __init__(self, task_id: str):
        super().__init__(
            f"Task not found: {task_id}",
            ErrorCode.TASK_NOT_FOUND,
            status_code=404,
            details={"task_id": task_id}
        )


class CatalogueNotFoundError(CatalogueWikiError):
    """Catalogue record not found in database."""

    def __init__(self, catalogue_id: str):
        super().__init__(
            f"Catalogue not found: {catalogue_id}",
            ErrorCode.CATALOGUE_NOT_FOUND,
            status_code=404,
            details={"catalogue_id": catalogue_id}
        )


class DatabaseError(CatalogueWikiError):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
