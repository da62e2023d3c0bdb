"""
Menu API exceptions.

Each error carries the HTTP status the API answers with, so route handlers
can let them propagate and the exception handler in main.py renders them.
"""

from typing import Optional


class MenuError(Exception):
    """Base exception for menu errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "detail": self.detail}


class ValidationError(MenuError):
    """Malformed or missing input, raised before any storage call."""

    code = "VALIDATION_ERROR"
    status_code = 400


class StorageError(MenuError):
    """The database reported a failure."""

    code = "STORAGE_ERROR"
    status_code = 500


class NotFoundError(StorageError):
    """A referenced document does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found",
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class ConflictError(MenuError):
    """The operation would leave dependent documents behind."""

    code = "CONFLICT"
    status_code = 409
