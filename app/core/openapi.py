"""OpenAPI metadata and customization utilities.

Enriches the generated schema with:
- Tags metadata
- ``X-RateLimit-*`` response headers on every rate limited operation

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

RATE_LIMIT_HEADERS: Dict[str, Any] = {
    "X-RateLimit-Limit": {
        "description": "Requests allowed per client per window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Remaining": {
        "description": "Requests left in the current window (0 when limited).",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "UNIX time (seconds) when the oldest counted request leaves the window.",
        "schema": {"type": "integer"},
    },
}


def apply_openapi_customizations(app: FastAPI, *, rate_limited_prefix: str = "/api/") -> None:
    """Patch FastAPI's OpenAPI generation to add tags and rate limit headers.

    - Adds tags metadata if not present
    - Documents ``X-RateLimit-*`` headers on the 200 and 429 responses of
      operations under ``rate_limited_prefix``
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Places",
                "description": "Rate limited proxy for Places autocomplete and details.",
            },
            {
                "name": "Health",
                "description": "Liveness checks (not rate limited).",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(rate_limited_prefix):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.get("responses", {})
                for status_code in ("200", "429"):
                    if status_code in responses:
                        responses[status_code].setdefault("headers", {}).update(RATE_LIMIT_HEADERS)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
