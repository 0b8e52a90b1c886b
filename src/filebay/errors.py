"""Error taxonomy shared by the storage core and the HTTP layer."""

from __future__ import annotations

from typing import Any


class FilebayError(Exception):
    """Base class for errors surfaced to callers as structured responses.

    Attributes:
        code: Stable machine-readable error kind.
        status_code: HTTP status used when the error crosses the network boundary.
        message: Human-readable message that is safe to return to callers.
        details: Optional structured payload included in responses.
    """

    code = "error"
    status_code = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready error payload."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return {"error": payload}


class ValidationError(FilebayError):
    """Raised when a required field is missing or a name is not acceptable."""

    code = "validation_error"
    status_code = 400


class NotFoundError(FilebayError):
    """Raised when a file, directory, or namespace does not exist."""

    code = "not_found"
    status_code = 404


class ConflictError(FilebayError):
    """Raised when a directory that should be created already exists."""

    code = "conflict"
    status_code = 409


class NonEmptyDirectoryError(FilebayError):
    """Raised when deleting a directory that still holds entries."""

    code = "non_empty_directory"
    status_code = 400

    def __init__(self, name: str, item_count: int) -> None:
        super().__init__(
            f"Directory '{name}' is not empty ({item_count} item(s)); delete its contents first.",
            details={"itemCount": item_count},
        )
        self.item_count = item_count


class SizeLimitExceeded(FilebayError):
    """Raised when an upload grows beyond the configured size limit."""

    code = "size_limit_exceeded"
    status_code = 413

    def __init__(self, limit_bytes: int) -> None:
        limit_mb = limit_bytes / (1024 * 1024)
        super().__init__(
            f"File size exceeds the limit (max {limit_mb:g}MB).",
            details={"limitBytes": limit_bytes},
        )
        self.limit_bytes = limit_bytes


class InternalIOError(FilebayError):
    """Raised when a filesystem operation fails.

    The message is generic; the underlying ``OSError`` is kept as ``__cause__`` for
    diagnostics and never rendered to callers.
    """

    code = "internal_io_error"
    status_code = 500


class AuthenticationError(FilebayError):
    """Raised when a protected route is called without a valid token."""

    code = "unauthorized"
    status_code = 401


class RateLimitExceeded(FilebayError):
    """Raised when a client exceeds the request budget of a rate-limited route."""

    code = "rate_limited"
    status_code = 429

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            "Too many requests; try again later.",
            details={"retryAfter": retry_after},
        )
        self.retry_after = retry_after


__all__ = [
    "FilebayError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "NonEmptyDirectoryError",
    "SizeLimitExceeded",
    "InternalIOError",
    "AuthenticationError",
    "RateLimitExceeded",
]
