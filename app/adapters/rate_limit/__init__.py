"""Rate limiting adapters.

This package provides the in-memory admission controller that guards the
``/api`` routes: sliding-window counters, a temporary blacklist and a
background sweep that bounds memory. The HTTP layer depends on the types in
``base`` so the storage can later move to a shared backend.
"""

from app.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AdmissionVerdict,
    BlacklistConfig,
    DenyReason,
    RateLimitConfig,
    RateLimitMetadata,
    WindowLimit,
)
from app.adapters.rate_limit.controller import AdmissionController

__all__ = [
    "AbstractAdmissionController",
    "AdmissionController",
    "AdmissionVerdict",
    "BlacklistConfig",
    "DenyReason",
    "RateLimitConfig",
    "RateLimitMetadata",
    "WindowLimit",
]
