"""In-memory request admission controller.

Layers, evaluated in order for every request:

1. Blacklist: clients blocked earlier are refused outright.
2. Blacklist trigger: too many requests within the observation window
   blocks the client (a state transition, not only a read).
3. Global ceiling across all clients.
4. Per-client minute window (also produces the ``X-RateLimit-*`` values).
5. Per-client burst window.

Only admitted requests are recorded. Concurrent requests from the same client
may both pass a check before either is recorded; each store is guarded by its
own narrow lock instead of a lock around the whole pipeline, so a limit can be
overshot by the number of in-flight requests.

Notes:
- Per-process only: running multiple workers multiplies the effective limits.
- Instants are monotonic milliseconds; only the reset header is wall-clock.
"""

from __future__ import annotations

import hashlib
import logging
import math
import time
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AdmissionVerdict,
    DenyReason,
    RateLimitConfig,
    RateLimitMetadata,
)
from app.adapters.rate_limit.blacklist import BlacklistStore
from app.adapters.rate_limit.sliding_window import SlidingWindowStore, SweepStats
from app.adapters.rate_limit.sweeper import SweepScheduler

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def hash_client_key(key: str) -> str:
    """Hash a client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class AdmissionController(AbstractAdmissionController):
    """Layered sliding-window limiter with temporary blacklisting.

    Build one instance per application and hand it to the HTTP layer; tests
    construct isolated instances with injected clocks.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        *,
        clock: Callable[[], float] = monotonic_ms,
        wall_clock: Callable[[], float] = time.time,
        windows: SlidingWindowStore | None = None,
        blacklist: BlacklistStore | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Immutable limits and windows.
            clock: Monotonic time source in milliseconds.
            wall_clock: UNIX time source in seconds, used for reset headers.
            windows: Optional pre-built sliding-window store.
            blacklist: Optional pre-built blacklist store.
        """
        self._config = config
        self._clock = clock
        self._wall_clock = wall_clock
        self._windows = windows if windows is not None else SlidingWindowStore()
        self._blacklist = blacklist if blacklist is not None else BlacklistStore()
        self._sweeper = SweepScheduler(
            self.sweep,
            interval_seconds=config.sweep_interval_ms / 1000,
        )

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @property
    def windows(self) -> SlidingWindowStore:
        return self._windows

    @property
    def blacklist(self) -> BlacklistStore:
        return self._blacklist

    @property
    def sweeper(self) -> SweepScheduler:
        return self._sweeper

    def check(self, key: str, *, now_ms: float | None = None) -> AdmissionVerdict:
        """Run the admission pipeline for one request.

        Args:
            key: Client identity (resolved source address).
            now_ms: Arrival instant in monotonic milliseconds.

        Returns:
            AdmissionVerdict; denies carry a reason, allows carry metadata.
        """
        now = self._clock() if now_ms is None else now_ms
        cfg = self._config

        if self._blacklist.is_blocked(key, now):
            return self._deny(key, DenyReason.BLOCKED)

        # Counted before this request is recorded: the request after
        # ``threshold`` admitted ones is the one that trips the block.
        hourly = self._windows.count_within(key, cfg.blacklist.window_ms, now)
        if hourly >= cfg.blacklist.threshold:
            expiry = self._blacklist.block(key, now, cfg.blacklist.duration_ms)
            logger.warning(
                "rate_limit.blacklisted",
                extra={
                    "key_hash": hash_client_key(key),
                    "hourly_requests": hourly,
                    "threshold": cfg.blacklist.threshold,
                    "block_duration_ms": cfg.blacklist.duration_ms,
                    "expires_in_ms": expiry - now,
                },
            )
            return self._deny(key, DenyReason.SUSPICIOUS_ACTIVITY)

        if self._windows.count_global_within(cfg.global_.window_ms, now) >= cfg.global_.requests:
            return self._deny(key, DenyReason.GLOBAL_OVERLOAD)

        minute = self._windows.count_within(key, cfg.ip.window_ms, now)
        metadata = self._build_metadata(key, minute, now)
        if minute >= cfg.ip.requests:
            return self._deny(
                key,
                DenyReason.IP_LIMIT,
                metadata=RateLimitMetadata(
                    limit=metadata.limit,
                    remaining=0,
                    reset_at=metadata.reset_at,
                ),
            )

        if self._windows.count_within(key, cfg.burst.window_ms, now) >= cfg.burst.requests:
            return self._deny(key, DenyReason.BURST_LIMIT)

        self._windows.record(key, now)
        return AdmissionVerdict(allowed=True, metadata=metadata)

    def sweep(self, now_ms: float | None = None) -> SweepStats:
        """Evict stale log entries, empty logs and expired blocks."""

        now = self._clock() if now_ms is None else now_ms
        stats = self._windows.sweep(now, self._config.retention_ms, self._config.global_.window_ms)
        for key in self._blacklist.purge_expired(now):
            logger.info("rate_limit.unblocked", extra={"key_hash": hash_client_key(key)})

        logger.debug(
            "sweep.completed",
            extra={
                "evicted_entries": stats.evicted_entries,
                "removed_keys": stats.removed_keys,
                "global_evicted": stats.global_evicted,
            },
        )
        return stats

    def start(self) -> None:
        self._sweeper.start()

    def shutdown(self, timeout: float | None = 5.0) -> None:
        self._sweeper.stop(timeout)

    def _build_metadata(self, key: str, minute_count: int, now: float) -> RateLimitMetadata:
        ip = self._config.ip
        oldest = self._windows.oldest_within(key, ip.window_ms, now)
        window_end = (now if oldest is None else oldest) + ip.window_ms
        reset_at = math.ceil(self._wall_clock() + (window_end - now) / 1000)
        return RateLimitMetadata(
            limit=ip.requests,
            remaining=max(0, ip.requests - minute_count - 1),
            reset_at=reset_at,
        )

    def _deny(
        self,
        key: str,
        reason: DenyReason,
        *,
        metadata: RateLimitMetadata | None = None,
    ) -> AdmissionVerdict:
        logger.info(
            "rate_limit.denied",
            extra={"key_hash": hash_client_key(key), "reason": reason.value},
        )
        return AdmissionVerdict(allowed=False, reason=reason, metadata=metadata)
