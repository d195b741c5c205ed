"""Admission controller interfaces and value types.

The HTTP layer depends on these types (not on the concrete stores) so the
in-memory controller can later be replaced by a shared backend without
touching the routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class DenyReason(str, Enum):
    """Why a request was refused, in pipeline order."""

    BLOCKED = "blocked"
    SUSPICIOUS_ACTIVITY = "suspicious-activity"
    GLOBAL_OVERLOAD = "global-overload"
    IP_LIMIT = "ip-limit"
    BURST_LIMIT = "burst-limit"

    @property
    def message(self) -> str:
        return DENY_MESSAGES[self]


# Client-visible strings; existing frontends match on these.
DENY_MESSAGES: dict[DenyReason, str] = {
    DenyReason.BLOCKED: "Too many requests. IP temporarily blocked.",
    DenyReason.SUSPICIOUS_ACTIVITY: "Suspicious activity. IP temporarily blocked.",
    DenyReason.GLOBAL_OVERLOAD: "Service temporarily overloaded. Please try again later.",
    DenyReason.IP_LIMIT: "Too many requests from this IP. Try again in a minute.",
    DenyReason.BURST_LIMIT: "Too many requests too quickly. Please slow down.",
}

DENY_STATUS_CODE = 429


@dataclass(frozen=True)
class WindowLimit:
    """A ``(limit, window_ms)`` pair for one sliding window."""

    requests: int
    window_ms: int


@dataclass(frozen=True)
class BlacklistConfig:
    """Blacklist trigger and block duration.

    Attributes:
        threshold: Requests within the observation window that trigger a block.
        duration_ms: How long a triggered block lasts.
        window_ms: Observation window for the trigger count.
    """

    threshold: int
    duration_ms: int
    window_ms: int = 3_600_000


@dataclass(frozen=True)
class RateLimitConfig:
    """Immutable limits used by the admission controller."""

    ip: WindowLimit
    burst: WindowLimit
    global_: WindowLimit
    blacklist: BlacklistConfig
    sweep_interval_ms: int = 60_000

    @property
    def retention_ms(self) -> int:
        """Widest window in use; per-client logs never need older entries."""
        return max(
            self.blacklist.window_ms,
            self.ip.window_ms,
            self.burst.window_ms,
        )


@dataclass(frozen=True)
class RateLimitMetadata:
    """Values for the ``X-RateLimit-*`` response headers.

    Attributes:
        limit: Max requests per client per minute window.
        remaining: Requests left in the current window (0 when denied).
        reset_at: UNIX epoch seconds when the oldest counted request leaves
            the window.
    """

    limit: int
    remaining: int
    reset_at: int

    def to_headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


@dataclass(frozen=True)
class AdmissionVerdict:
    """Outcome of one admission decision.

    Attributes:
        allowed: Whether the request may proceed.
        reason: Deny reason, ``None`` when allowed.
        metadata: Rate limit header values; present on allow and on the
            ``ip-limit`` deny only.
    """

    allowed: bool
    reason: DenyReason | None = None
    metadata: RateLimitMetadata | None = None

    @property
    def status_code(self) -> int | None:
        return None if self.allowed else DENY_STATUS_CODE

    @property
    def message(self) -> str | None:
        return self.reason.message if self.reason else None

    @property
    def headers(self) -> dict[str, str]:
        return self.metadata.to_headers() if self.metadata else {}


class AbstractAdmissionController(ABC):
    """Interface for request admission controllers."""

    @abstractmethod
    def check(self, key: str, *, now_ms: float | None = None) -> AdmissionVerdict:
        """Decide whether a request from ``key`` is admitted.

        Args:
            key: Client identity (resolved source address).
            now_ms: Arrival instant in monotonic milliseconds; defaults to the
                controller's clock.

        Returns:
            AdmissionVerdict describing the decision.
        """
        raise NotImplementedError
