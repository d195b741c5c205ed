"""Factory for the configured Places client."""

import logging

from app.adapters.places.base import AbstractPlacesClient
from app.adapters.places.google_client import GooglePlacesClient
from app.core.config import ProxySettings, settings

logger = logging.getLogger(__name__)


def create_places_client(proxy_settings: ProxySettings | None = None) -> AbstractPlacesClient:
    """Instantiate the Places client from settings.

    A missing API key is logged, not fatal: the upstream answers with
    ``REQUEST_DENIED`` and the payload is passed through to the caller.
    """
    cfg = proxy_settings or settings.proxy
    if not cfg.google_api_key:
        logger.warning("places.missing_api_key", extra={"hint": "Set GOOGLE_API_KEY"})

    return GooglePlacesClient(
        api_key=cfg.google_api_key,
        base_url=cfg.google_places_base_url,
        timeout_seconds=cfg.places_timeout_seconds,
    )
