"""Error taxonomy for the request pipeline.

Per-record errors (``RecordError``, ``FormattingError``) are contained and
turned into placeholder elements. Everything else aborts the request with a
generic 500 response carrying ``public_message``.
"""

from __future__ import annotations

INTERNAL_ERROR_MESSAGE = "Internal Server Error"
UNKNOWN_BASE_MESSAGE = "Unknown base requested"


class EssError(Exception):
    """Base exception for all gateway errors."""

    public_message: str = INTERNAL_ERROR_MESSAGE


class UnknownBaseError(EssError):
    """Raised when the requested base is not configured."""

    public_message = UNKNOWN_BASE_MESSAGE

    def __init__(self, base: str, tracking_id: str | None = None) -> None:
        super().__init__(f"Unknown base requested: {base!r}")
        self.base = base
        self.tracking_id = tracking_id


class BackendError(EssError):
    """Base exception for failures talking to the SRU backend."""


class BackendHttpError(BackendError):
    """Raised when the backend answers with a non-OK status or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendParseError(BackendError):
    """Raised when the backend body is not a searchRetrieveResponse."""


class RecordError(EssError):
    """Base exception for a malformed record in an otherwise valid response."""


class RecordEscapingError(RecordError):
    """Raised when a record is not XML-escaped."""

    def __init__(self, escaping: str | None) -> None:
        super().__init__(f"Expected xml escaped record in response, got: {escaping}")
        self.escaping = escaping


class RecordContentCountError(RecordError):
    """Raised when recordData does not hold exactly one node."""

    def __init__(self, count: int, kinds: list[str] | None = None) -> None:
        super().__init__(f"Expected 1 record in response, but got {count}")
        self.count = count
        self.kinds = kinds or []


class RecordContentTypeError(RecordError):
    """Raised when the single recordData node is not an element."""


class FormattingError(EssError):
    """Raised when the formatting collaborator fails for one record."""


class AssemblyError(EssError):
    """Raised when collecting the concurrent formatting results fails."""


class FormattingTimeoutError(AssemblyError):
    """Raised when formatting does not finish within the request deadline."""


class PoolClosedError(EssError):
    """Raised when work is submitted to a worker pool that is not running."""


class UnexpectedError(EssError):
    """Wraps any failure that has no more specific classification."""
