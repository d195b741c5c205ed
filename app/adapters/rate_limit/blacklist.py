"""Temporary blacklist of client keys."""

from __future__ import annotations

import threading


class BlacklistStore:
    """Maps client keys to a block expiry instant (monotonic ms).

    A key is blocked while ``now < expiry``. Re-blocking overwrites the
    expiry, so the duration always counts from the latest trigger.
    """

    def __init__(self) -> None:
        self._expiry_by_key: dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._expiry_by_key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._expiry_by_key

    def is_blocked(self, key: str, now: float) -> bool:
        with self._lock:
            expiry = self._expiry_by_key.get(key)
        return expiry is not None and now < expiry

    def block(self, key: str, now: float, duration_ms: float) -> float:
        """Block ``key`` until ``now + duration_ms`` and return the expiry."""

        expiry = now + duration_ms
        with self._lock:
            self._expiry_by_key[key] = expiry
        return expiry

    def expiry_of(self, key: str) -> float | None:
        with self._lock:
            return self._expiry_by_key.get(key)

    def purge_expired(self, now: float) -> list[str]:
        """Remove entries whose expiry has passed and return their keys."""

        with self._lock:
            expired = [key for key, expiry in self._expiry_by_key.items() if now > expiry]
            for key in expired:
                del self._expiry_by_key[key]
        return expired
