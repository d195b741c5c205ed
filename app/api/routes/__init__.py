from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.places import router as places_router

__all__ = ["health_router", "places_router"]
