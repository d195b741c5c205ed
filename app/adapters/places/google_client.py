"""Google Places web service adapter."""

from typing import Any

import httpx

from app.adapters.places.base import AbstractPlacesClient
from app.core.errors import UpstreamAppError

DETAIL_FIELDS = "name,rating,formatted_address,geometry,place_id,url,website,vicinity,icon"


class GooglePlacesClient(AbstractPlacesClient):
    """Client for the Places autocomplete and details endpoints.

    Uses one pooled ``httpx.AsyncClient`` for the lifetime of the app.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://maps.googleapis.com/maps/api/place",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            api_key: Places API key sent as the ``key`` query parameter.
            base_url: Base URL of the Places web service.
            timeout_seconds: Timeout for requests in seconds.
            transport: Optional transport override (tests use MockTransport).
        """
        self._api_key = api_key
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def autocomplete(self, text: str) -> dict[str, Any]:
        return await self._get_json("/autocomplete/json", {"input": text}, operation="autocomplete")

    async def details(self, place_id: str) -> dict[str, Any]:
        return await self._get_json(
            "/details/json",
            {"place_id": place_id, "fields": DETAIL_FIELDS},
            operation="details",
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get_json(self, path: str, params: dict[str, str], *, operation: str) -> dict[str, Any]:
        if self._api_key:
            params = {**params, "key": self._api_key}

        try:
            response = await self.client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamAppError(
                code="places_upstream_status",
                message=f"Places {operation} returned HTTP {exc.response.status_code}",
                details={"upstream_status": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamAppError(
                code="places_upstream_unavailable",
                message=f"Places {operation} request failed: {type(exc).__name__}",
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamAppError(
                code="places_invalid_json",
                message=f"Places {operation} returned invalid JSON",
            ) from exc
