"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any import of ``app.core.config`` so the
global settings object is built from them.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")
os.environ.setdefault("TRUST_PROXY_HOPS", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from app.adapters.rate_limit.base import BlacklistConfig, RateLimitConfig, WindowLimit
from app.adapters.rate_limit.controller import AdmissionController


class FakeClock:
    """Deterministic monotonic clock in milliseconds."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def make_config(
    *,
    ip: tuple[int, int] = (10, 60_000),
    burst: tuple[int, int] = (5, 10_000),
    global_: tuple[int, int] = (100, 60_000),
    threshold: int = 50,
    duration_ms: int = 3_600_000,
    sweep_interval_ms: int = 60_000,
) -> RateLimitConfig:
    return RateLimitConfig(
        ip=WindowLimit(*ip),
        burst=WindowLimit(*burst),
        global_=WindowLimit(*global_),
        blacklist=BlacklistConfig(threshold=threshold, duration_ms=duration_ms),
        sweep_interval_ms=sweep_interval_ms,
    )


@pytest.fixture
def config_factory():
    """Build a ``RateLimitConfig``; keyword overrides as for ``controller_factory``."""
    return make_config


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeClock:
    """UNIX seconds, fixed unless a test advances it."""
    return FakeClock(start=1_700_000_000.0)


@pytest.fixture
def controller_factory(clock: FakeClock, wall_clock: FakeClock):
    def _build(**overrides) -> AdmissionController:
        return AdmissionController(make_config(**overrides), clock=clock, wall_clock=wall_clock)

    return _build
