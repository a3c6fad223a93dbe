"""Exceptions raised by TaskFlow components."""

from typing import Any


class TaskflowError(Exception):
    """Base class for TaskFlow errors."""


class StoreError(TaskflowError):
    """Persistent store rejected or failed an operation."""


class NotFoundError(StoreError):
    """Targeted row does not exist in the store."""


class EnhancementError(TaskflowError):
    """Enhancement webhook call failed or returned an unusable payload."""


class ApiError(TaskflowError):
    """Error returned to HTTP callers as ``{"error": ..., "details": ...}``."""

    def __init__(self, status_code: int, error: str, details: Any = None) -> None:
        """Initialize with HTTP status, short error message and optional details."""
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    def to_body(self) -> dict[str, Any]:
        """Build JSON body for the response."""
        body: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body
