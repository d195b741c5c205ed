"""Global exception handlers for consistent error responses.

Design:
- ValidationAppError → 400
- RateLimitAppError → 429 with X-RateLimit-* headers when available
- UpstreamAppError → 500
- Unexpected Exception → generic 500 (safety net)
- Admitted requests that fail keep their X-RateLimit-* headers
- All responses include request_id for tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError, RateLimitAppError, UpstreamAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def admitted_rate_limit_headers(request: Request) -> dict[str, str]:
    """Headers recorded by the rate limit dependency for an admitted request."""
    headers = getattr(request.state, "rate_limit_headers", None)
    return dict(headers) if isinstance(headers, dict) else {}


def _status_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, UpstreamAppError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Response body: ``{"error": {"code", "message", "request_id", "details"?}}``.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code = _status_for(exc)
    headers = admitted_rate_limit_headers(request)
    if isinstance(exc, RateLimitAppError):
        headers = dict(exc.headers)

    log = logger.info if status_code == 429 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "has_details": bool(exc.details),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure and returns a generic message; no stack traces or
    exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
        headers=admitted_rate_limit_headers(request) or None,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
