"""Pydantic schemas for the Places proxy endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AutocompleteRequest(BaseModel):
    """Body of ``POST /api/places/autocomplete``."""

    input: str | None = Field(
        default=None,
        description="Partial text typed by the user.",
    )


class PlaceDetailsRequest(BaseModel):
    """Body of ``POST /api/places/details``."""

    place_id: str | None = Field(
        default=None,
        description="Place identifier returned by autocomplete.",
    )


class ErrorBody(BaseModel):
    code: str
    message: str
    request_id: str | None = None


class ErrorResponse(BaseModel):
    """Shape of every error response (400, 429, 500)."""

    error: ErrorBody
