"""Tests for client key resolution behind reverse proxies."""

from unittest.mock import MagicMock

import pytest

from app.core.client_key import parse_forwarded_for, resolve_client_key, select_client_address


@pytest.mark.parametrize(
    ("peer", "forwarded", "hops", "expected"),
    [
        ("10.0.0.1", [], 0, "10.0.0.1"),
        ("10.0.0.1", ["203.0.113.7"], 0, "10.0.0.1"),
        ("10.0.0.1", ["203.0.113.7"], 1, "203.0.113.7"),
        ("10.0.0.1", ["198.51.100.2", "203.0.113.7"], 1, "203.0.113.7"),
        ("10.0.0.1", ["198.51.100.2", "203.0.113.7"], 2, "198.51.100.2"),
        # more hops than addresses: furthest address wins
        ("10.0.0.1", ["203.0.113.7"], 5, "203.0.113.7"),
        ("10.0.0.1", [], 1, "10.0.0.1"),
        (None, [], 1, "unknown"),
    ],
)
def test_select_client_address(peer, forwarded, hops, expected) -> None:
    assert select_client_address(peer, forwarded, hops) == expected


def test_parse_forwarded_for_strips_blanks() -> None:
    assert parse_forwarded_for(" 203.0.113.7 ,, 10.0.0.2 ") == ["203.0.113.7", "10.0.0.2"]
    assert parse_forwarded_for("") == []


def test_resolve_client_key_reads_request() -> None:
    request = MagicMock()
    request.client.host = "10.0.0.1"
    request.headers = {"x-forwarded-for": "203.0.113.7"}

    assert resolve_client_key(request, trust_proxy_hops=1) == "203.0.113.7"


def test_resolve_client_key_without_client() -> None:
    request = MagicMock()
    request.client = None
    request.headers = {}

    assert resolve_client_key(request, trust_proxy_hops=1) == "unknown"
