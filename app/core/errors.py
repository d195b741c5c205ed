"""Application-level exception types.

Domain errors raised by routes and adapters; the handlers in
``app.core.exception_handlers`` turn them into consistent JSON responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    http_status: int
    upstream_status: int
    reason: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input is missing or malformed."""


class UpstreamAppError(AppError):
    """Raised when the Places API call fails or returns garbage."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when the admission controller denies a request.

    Attributes:
        headers: ``X-RateLimit-*`` headers to send with the 429, if any.
    """

    headers: dict[str, str] = field(default_factory=dict)
