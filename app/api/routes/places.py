from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from app.adapters.places.base import AbstractPlacesClient
from app.core.errors import UpstreamAppError, ValidationAppError
from app.core.rate_limit import enforce_rate_limit
from app.schemas.places import AutocompleteRequest, ErrorResponse, PlaceDetailsRequest

logger = logging.getLogger(__name__)

RATE_LIMITED_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing request field"},
    429: {"model": ErrorResponse, "description": "Rate limited or temporarily blocked"},
    500: {"model": ErrorResponse, "description": "Upstream Places API failure"},
}

router = APIRouter(
    prefix="/places",
    tags=["Places"],
    dependencies=[Depends(enforce_rate_limit)],
    responses=RATE_LIMITED_RESPONSES,
)


def get_places_client(request: Request) -> AbstractPlacesClient:
    return request.app.state.places_client


@router.post("/autocomplete")
async def autocomplete(
    body: AutocompleteRequest | None = None,
    places: AbstractPlacesClient = Depends(get_places_client),
) -> dict[str, Any]:
    """Proxy a Places autocomplete query.

    Returns:
        dict: The upstream JSON payload, unchanged.

    Raises:
        ValidationAppError: 400 when ``input`` is missing or empty.
        UpstreamAppError: 500 when the upstream call fails.
    """
    if body is None or not body.input:
        raise ValidationAppError(code="input_required", message="Input is required")

    try:
        return await places.autocomplete(body.input)
    except UpstreamAppError as exc:
        logger.error("places.autocomplete_failed", extra={"error_code": exc.code, "error_message": exc.message})
        raise UpstreamAppError(
            code=exc.code,
            message="Failed to fetch suggestions",
            details=exc.details,
        ) from exc


@router.post("/details")
async def place_details(
    body: PlaceDetailsRequest | None = None,
    places: AbstractPlacesClient = Depends(get_places_client),
) -> dict[str, Any]:
    """Proxy a Places details lookup.

    Returns:
        dict: The upstream JSON payload, unchanged.

    Raises:
        ValidationAppError: 400 when ``place_id`` is missing or empty.
        UpstreamAppError: 500 when the upstream call fails.
    """
    if body is None or not body.place_id:
        raise ValidationAppError(code="place_id_required", message="Place ID is required")

    try:
        return await places.details(body.place_id)
    except UpstreamAppError as exc:
        logger.error("places.details_failed", extra={"error_code": exc.code, "error_message": exc.message})
        raise UpstreamAppError(
            code=exc.code,
            message="Failed to fetch place details",
            details=exc.details,
        ) from exc
