"""
SuperMall Errors

Every failure is scoped to the single requested operation. Each error carries
a readable message and the HTTP status the API layer reports it with.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for catalog failures."""

    status_code: int = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
        }
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(CatalogError):
    """Input violates a field or cross-field rule."""

    status_code = 422


class NotFoundError(CatalogError):
    """Referenced identifier does not exist."""

    status_code = 404


class ConflictError(CatalogError):
    """Referential constraint blocks the operation."""

    status_code = 409


class InvalidArgumentError(CatalogError):
    """Malformed call, e.g. wrong comparison list size."""

    status_code = 400


class StorageError(CatalogError):
    """Persistence backend failure."""

    status_code = 503
