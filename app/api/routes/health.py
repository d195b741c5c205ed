from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict[str, Any]:
    """Liveness check; not rate limited.

    Also reports the size of the limiter's in-memory stores so growth is
    visible without exposing client addresses.
    """

    controller = getattr(request.app.state, "admission_controller", None)
    if controller is None:
        return {"status": "ok"}

    return {
        "status": "ok",
        "rate_limiter": {
            "tracked_clients": len(controller.windows),
            "blacklisted_clients": len(controller.blacklist),
            "sweeper_running": controller.sweeper.running,
        },
    }
