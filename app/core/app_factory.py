"""Application factory for the FastAPI app.

Builds the app with its long-lived collaborators (admission controller and
Places client) attached to ``app.state``. Tests pass their own instances to
get isolated limiter state and a fake upstream.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.places.base import AbstractPlacesClient
from app.adapters.places.factory import create_places_client
from app.adapters.rate_limit.controller import AdmissionController
from app.api.routes import health_router, places_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_admission_controller

logger = logging.getLogger(__name__)


def create_app(
    *,
    admission_controller: AdmissionController | None = None,
    places_client: AbstractPlacesClient | None = None,
    start_sweeper: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        admission_controller: Limiter to use; built from settings if omitted.
        places_client: Upstream client; built from settings if omitted.
        start_sweeper: Run the background eviction sweep while the app is up.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    controller = admission_controller or build_admission_controller(settings.rate_limit)
    places = places_client or create_places_client(settings.proxy)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_sweeper:
            controller.start()
        try:
            yield
        finally:
            controller.shutdown()
            await places.aclose()
            logger.info("app.shutdown")

    app = FastAPI(
        title="Places Proxy API",
        description=(
            "Proxy for the Google Places autocomplete and details endpoints. "
            "Every /api request passes an in-memory admission controller with "
            "per-client burst and per-minute limits, a global ceiling and "
            "temporary blacklisting of abusive clients."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.admission_controller = controller
    app.state.places_client = places

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.proxy.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(places_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
