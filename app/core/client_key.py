"""Resolve the client identity used to scope per-client limits.

The address chain is the socket peer followed by ``X-Forwarded-For`` entries
from nearest to furthest. The first ``trust_proxy_hops`` addresses are our
own proxies; the next one is the client. When the chain is shorter than the
hop count, the furthest address is used.
"""

from __future__ import annotations

from typing import Sequence

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def parse_forwarded_for(header_value: str | None) -> list[str]:
    """Split an ``X-Forwarded-For`` value into addresses, client first.

    Examples:
        >>> parse_forwarded_for("203.0.113.7, 10.0.0.2")
        ['203.0.113.7', '10.0.0.2']
        >>> parse_forwarded_for(None)
        []
    """
    if not header_value:
        return []
    return [part.strip() for part in header_value.split(",") if part.strip()]


def select_client_address(peer: str | None, forwarded: Sequence[str], trust_proxy_hops: int) -> str:
    """Pick the first untrusted address walking back from the socket peer.

    Args:
        peer: Socket peer address, if known.
        forwarded: ``X-Forwarded-For`` addresses, client first.
        trust_proxy_hops: Number of trusted proxies in front of the app.

    Returns:
        The client address, or ``"unknown"`` when nothing is available.
    """
    chain = [peer or UNKNOWN_CLIENT]
    if trust_proxy_hops > 0:
        chain.extend(reversed(forwarded))
    index = min(trust_proxy_hops, len(chain) - 1)
    return chain[index]


def resolve_client_key(request: Request, trust_proxy_hops: int) -> str:
    """Build the client key for the current request."""

    peer = request.client.host if request.client else None
    forwarded = parse_forwarded_for(request.headers.get("x-forwarded-for"))
    return select_client_address(peer, forwarded, trust_proxy_hops)
