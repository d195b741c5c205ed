"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Rate limit values fail closed: a missing, empty, non-numeric or non-positive
value falls back to the documented default instead of disabling a limit.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.adapters.rate_limit.base import (
    BlacklistConfig,
    RateLimitConfig,
    WindowLimit,
)

logger = logging.getLogger(__name__)

# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)

BLACKLIST_WINDOW_MS = 3_600_000
SWEEP_INTERVAL_MS = 60_000
DEFAULT_CORS_ORIGINS = ("http://localhost:3002",)


def _field_default(cls: type[BaseSettings], field_name: str) -> Any:
    return cls.model_fields[field_name].default


def parse_int(value: Any, *, minimum: int = 1) -> int | None:
    """Parse an integer setting, returning ``None`` when it is unusable.

    Examples:
        >>> parse_int(" 010 ")
        10
        >>> parse_int("abc") is None
        True
        >>> parse_int("0") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed >= minimum else None


def coerce_int(value: Any, default: int, *, minimum: int = 1) -> int:
    """Parse an integer setting, falling back to ``default``.

    Args:
        value: Raw value (usually a string from the environment).
        default: Value used when ``value`` is unusable.
        minimum: Smallest accepted value.

    Returns:
        The parsed integer, or ``default``.

    Examples:
        >>> coerce_int("25", 10)
        25
        >>> coerce_int("abc", 10)
        10
        >>> coerce_int("0", 10)
        10
    """
    parsed = parse_int(value, minimum=minimum)
    return default if parsed is None else parsed


def parse_origins(origins: str | None) -> list[str]:
    """Parse comma-separated CORS origins, always including the local UI.

    Examples:
        >>> parse_origins("https://a.example, https://b.example")
        ['https://a.example', 'https://b.example', 'http://localhost:3002']
        >>> parse_origins(None)
        ['http://localhost:3002']
    """
    parsed = [o.strip() for o in (origins or "").split(",") if o.strip()]
    for origin in DEFAULT_CORS_ORIGINS:
        if origin not in parsed:
            parsed.append(origin)
    return parsed


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return RateLimitSettings()  # type: ignore[call-arg]


def _build_proxy_settings() -> "ProxySettings":
    """Build proxy settings from environment.

    See _build_rate_limit_settings() for rationale about the type ignore.
    """

    return ProxySettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class RateLimitSettings(BaseSettings):
    """Limits enforced by the admission controller."""

    rate_limit_ip_requests: int = Field(
        10,
        description="Maximum requests per client within the per-client window",
    )
    rate_limit_ip_window_ms: int = Field(
        60000,
        description="Per-client window size in milliseconds",
    )
    rate_limit_burst_requests: int = Field(
        5,
        description="Maximum requests per client within the burst window",
    )
    rate_limit_burst_window_ms: int = Field(
        10000,
        description="Burst window size in milliseconds",
    )
    rate_limit_global_requests: int = Field(
        100,
        description="Maximum requests across all clients within the global window",
    )
    rate_limit_global_window_ms: int = Field(
        60000,
        description="Global window size in milliseconds",
    )
    blacklist_hourly_threshold: int = Field(
        50,
        description="Requests per hour from one client that trigger a temporary block",
    )
    blacklist_duration_ms: int = Field(
        3600000,
        description="How long a blacklisted client stays blocked, in milliseconds",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _fail_closed(cls, value: Any, info: ValidationInfo) -> int:
        default = _field_default(cls, info.field_name)
        parsed = parse_int(value)
        if parsed is None:
            logger.warning(
                "config.invalid_value",
                extra={"setting": info.field_name, "fallback": default},
            )
            return default
        return parsed

    def to_config(self) -> RateLimitConfig:
        """Build the immutable limits consumed by the admission controller."""

        return RateLimitConfig(
            ip=WindowLimit(self.rate_limit_ip_requests, self.rate_limit_ip_window_ms),
            burst=WindowLimit(self.rate_limit_burst_requests, self.rate_limit_burst_window_ms),
            global_=WindowLimit(self.rate_limit_global_requests, self.rate_limit_global_window_ms),
            blacklist=BlacklistConfig(
                threshold=self.blacklist_hourly_threshold,
                duration_ms=self.blacklist_duration_ms,
                window_ms=BLACKLIST_WINDOW_MS,
            ),
            sweep_interval_ms=SWEEP_INTERVAL_MS,
        )


class ProxySettings(BaseSettings):
    """Upstream Places API and client-address resolution."""

    google_api_key: str | None = Field(
        None,
        description="Google Places API key appended to upstream requests",
    )
    google_places_base_url: str = Field(
        "https://maps.googleapis.com/maps/api/place",
        description="Base URL of the Places web service",
    )
    places_timeout_seconds: float = Field(
        10.0,
        description="Upstream request timeout in seconds",
        gt=0,
    )
    trust_proxy_hops: int = Field(
        1,
        description="Number of reverse proxies whose X-Forwarded-For entries are trusted",
    )
    cors_allowed_origins: str | None = Field(
        None,
        description="Comma-separated list of browser origins allowed by CORS",
    )
    port: int = Field(3001, description="Port used when running the app module directly")

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @field_validator("trust_proxy_hops", mode="before")
    @classmethod
    def _hops_fail_closed(cls, value: Any) -> int:
        return coerce_int(value, _field_default(cls, "trust_proxy_hops"), minimum=0)

    @property
    def cors_origins(self) -> list[str]:
        return parse_origins(self.cors_allowed_origins)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    proxy: ProxySettings = Field(default_factory=_build_proxy_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
