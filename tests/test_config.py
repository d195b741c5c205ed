"""Tests for rate limit configuration loading."""

import logging

import pytest

from app.core.config import ProxySettings, RateLimitSettings, coerce_int, parse_int, parse_origins

RATE_LIMIT_ENV = [
    "RATE_LIMIT_IP_REQUESTS",
    "RATE_LIMIT_IP_WINDOW_MS",
    "RATE_LIMIT_BURST_REQUESTS",
    "RATE_LIMIT_BURST_WINDOW_MS",
    "RATE_LIMIT_GLOBAL_REQUESTS",
    "RATE_LIMIT_GLOBAL_WINDOW_MS",
    "BLACKLIST_HOURLY_THRESHOLD",
    "BLACKLIST_DURATION_MS",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in RATE_LIMIT_ENV + ["TRUST_PROXY_HOPS"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    cfg = RateLimitSettings().to_config()

    assert (cfg.ip.requests, cfg.ip.window_ms) == (10, 60_000)
    assert (cfg.burst.requests, cfg.burst.window_ms) == (5, 10_000)
    assert (cfg.global_.requests, cfg.global_.window_ms) == (100, 60_000)
    assert cfg.blacklist.threshold == 50
    assert cfg.blacklist.duration_ms == 3_600_000
    assert cfg.blacklist.window_ms == 3_600_000
    assert cfg.sweep_interval_ms == 60_000
    assert cfg.retention_ms == 3_600_000


def test_reads_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RATE_LIMIT_IP_REQUESTS", "25")
    clean_env.setenv("RATE_LIMIT_BURST_WINDOW_MS", "5000")
    clean_env.setenv("BLACKLIST_DURATION_MS", "120000")

    cfg = RateLimitSettings().to_config()

    assert cfg.ip.requests == 25
    assert cfg.burst.window_ms == 5_000
    assert cfg.blacklist.duration_ms == 120_000


@pytest.mark.parametrize("raw", ["abc", "", "  ", "0", "-5", "1.5"])
def test_invalid_values_fall_back_to_defaults(clean_env: pytest.MonkeyPatch, raw: str) -> None:
    clean_env.setenv("RATE_LIMIT_IP_REQUESTS", raw)
    clean_env.setenv("RATE_LIMIT_GLOBAL_WINDOW_MS", raw)

    settings = RateLimitSettings()

    assert settings.rate_limit_ip_requests == 10
    assert settings.rate_limit_global_window_ms == 60_000


@pytest.mark.parametrize("raw", ["010", " 10", "10 "])
def test_valid_spelling_of_default_does_not_warn(
    clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture, raw: str
) -> None:
    clean_env.setenv("RATE_LIMIT_IP_REQUESTS", raw)

    with caplog.at_level(logging.WARNING, logger="app.core.config"):
        settings = RateLimitSettings()

    assert settings.rate_limit_ip_requests == 10
    assert not [r for r in caplog.records if r.getMessage() == "config.invalid_value"]


def test_rejected_value_warns_once_per_setting(
    clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    clean_env.setenv("RATE_LIMIT_IP_REQUESTS", "abc")

    with caplog.at_level(logging.WARNING, logger="app.core.config"):
        RateLimitSettings()

    warnings = [r for r in caplog.records if r.getMessage() == "config.invalid_value"]
    assert len(warnings) == 1
    assert warnings[0].setting == "rate_limit_ip_requests"
    assert warnings[0].fallback == 10


def test_trust_proxy_hops_accepts_zero(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("TRUST_PROXY_HOPS", "0")

    assert ProxySettings().trust_proxy_hops == 0


def test_trust_proxy_hops_invalid_falls_back(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("TRUST_PROXY_HOPS", "many")

    assert ProxySettings().trust_proxy_hops == 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("7", 7), (" 12 ", 12), (None, 3), ("x", 3), (0, 3), (True, 3)],
)
def test_coerce_int(raw, expected: int) -> None:
    assert coerce_int(raw, 3) == expected


@pytest.mark.parametrize(("raw", "expected"), [("010", 10), ("abc", None), ("-1", None)])
def test_parse_int_reports_rejection(raw: str, expected) -> None:
    assert parse_int(raw) == expected


def test_parse_origins_always_includes_local_ui() -> None:
    assert parse_origins("https://maps.example") == ["https://maps.example", "http://localhost:3002"]
    assert parse_origins("http://localhost:3002") == ["http://localhost:3002"]
