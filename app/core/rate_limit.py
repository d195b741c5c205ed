"""Rate limiting dependency for FastAPI routes.

This module wires the admission controller into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- Explicit state: the controller lives on ``app.state`` and is built by the
  app factory (or injected by tests), never as a module-level singleton.
- Every ``/api`` request is checked exactly once; allowed responses carry
  ``X-RateLimit-*`` headers, denials become ``RateLimitAppError`` (429).
"""

from __future__ import annotations

import logging

from fastapi import Request, Response

from app.adapters.rate_limit.base import AbstractAdmissionController
from app.adapters.rate_limit.controller import AdmissionController, hash_client_key
from app.core.client_key import resolve_client_key
from app.core.config import RateLimitSettings, settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)


def build_admission_controller(
    rate_limit_settings: RateLimitSettings | None = None,
) -> AdmissionController:
    """Create a controller from settings (defaults to the global settings)."""

    cfg = (rate_limit_settings or settings.rate_limit).to_config()
    logger.info(
        "rate_limit.configured",
        extra={
            "ip_limit": cfg.ip.requests,
            "ip_window_ms": cfg.ip.window_ms,
            "burst_limit": cfg.burst.requests,
            "burst_window_ms": cfg.burst.window_ms,
            "global_limit": cfg.global_.requests,
            "global_window_ms": cfg.global_.window_ms,
            "blacklist_threshold": cfg.blacklist.threshold,
            "blacklist_duration_ms": cfg.blacklist.duration_ms,
        },
    )
    return AdmissionController(cfg)


def get_admission_controller(request: Request) -> AbstractAdmissionController:
    """Return the controller attached to the running application."""

    return request.app.state.admission_controller


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing the layered rate limits.

    Args:
        request: FastAPI request.
        response: Sub-response whose headers FastAPI merges into the result.
            The same headers are kept on ``request.state.rate_limit_headers``
            so error handlers can attach them to admitted requests that fail.

    Raises:
        RateLimitAppError: 429 when the controller denies the request.
    """

    controller = get_admission_controller(request)
    client_key = resolve_client_key(request, settings.proxy.trust_proxy_hops)
    verdict = controller.check(client_key)

    if verdict.allowed:
        response.headers.update(verdict.headers)
        # The sub-response is dropped when the route raises; handlers read these
        request.state.rate_limit_headers = verdict.headers
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": hash_client_key(client_key),
                "remaining": verdict.metadata.remaining if verdict.metadata else None,
            },
        )
        return

    raise RateLimitAppError(
        code=verdict.reason.value,
        message=verdict.message,
        details={"reason": verdict.reason.value},
        headers=verdict.headers,
    )
