from __future__ import annotations

from typing import Any, Optional


# PUBLIC_INTERFACE
class AppError(Exception):
    """
    Base class for failures that handlers surface to the client.

    Each subclass fixes the HTTP status and the `error` name used in the
    JSON error envelope. `message` is safe to show to clients; internal
    details (query text, driver messages) belong in the chained cause.
    """

    status_code: int = 500
    error: str = "InternalError"

    def __init__(self, message: str, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(AppError):
    status_code = 404
    error = "NotFound"


class BadInputError(AppError):
    status_code = 400
    error = "BadInput"


class StorageError(AppError):
    """Database unreachable, query failed or returned something unusable."""

    status_code = 502
    error = "StorageError"


class InvalidRecordError(StorageError):
    """A stored record does not fit the shape the views need."""

    error = "InvalidRecord"
