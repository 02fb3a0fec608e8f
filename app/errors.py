"""
Error kinds raised by the event API.

Every client-visible failure is an ``EventAPIError`` carrying an ``ErrorKind``.
The kind decides the HTTP status; the exception handler in ``app.main`` renders
the body as ``{"error": error, "code": kind, **details}``.
"""

from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    """Discriminated error kinds and the HTTP status each maps to."""
    INVALID_ID = "INVALID_ID"
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_DATE = "INVALID_DATE"
    INVALID_BODY = "INVALID_BODY"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    TOO_MANY_FILES = "TOO_MANY_FILES"
    UNEXPECTED_FILE_FIELD = "UNEXPECTED_FILE_FIELD"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.INVALID_ID: 400,
    ErrorKind.MISSING_FIELDS: 400,
    ErrorKind.INVALID_DATE: 400,
    ErrorKind.INVALID_BODY: 400,
    ErrorKind.INVALID_FILE_TYPE: 400,
    ErrorKind.FILE_TOO_LARGE: 400,
    ErrorKind.TOO_MANY_FILES: 400,
    ErrorKind.UNEXPECTED_FILE_FIELD: 400,
    ErrorKind.EVENT_NOT_FOUND: 404,
    ErrorKind.STORAGE_ERROR: 500,
}


class EventAPIError(Exception):
    """A failure that maps onto a known HTTP response."""

    def __init__(self, kind: ErrorKind, error: str, **details: Any) -> None:
        super().__init__(error)
        self.kind = kind
        self.error = error
        self.details = details

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self, include_internal: bool = True) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "code": self.kind.value}
        details = dict(self.details)
        # Driver messages can leak hostnames, keep them out of production
        if not include_internal:
            details.pop("detail", None)
        body.update(details)
        return body


class UploadRejected(EventAPIError):
    """Raised by the upload gate before the handler sees the file."""
