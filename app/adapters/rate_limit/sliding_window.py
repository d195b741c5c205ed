"""In-memory sliding-window request logs.

Notes:
- Per-process only: running multiple workers multiplies the effective limits.
- Thread-safe: the per-client logs and the global log each have their own
  lock, so a sweep or a global count never serializes unrelated clients.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class SweepStats:
    """What one eviction pass removed."""

    evicted_entries: int
    removed_keys: int
    global_evicted: int


def _within(instants: Iterable[float], window_ms: float, now: float) -> list[float]:
    return [t for t in instants if now - t < window_ms]


class SlidingWindowStore:
    """Per-client and global logs of request arrival instants.

    Each log is a ``deque`` in arrival order. Counts filter on
    ``now - t < window_ms`` so any window narrower than the retention window
    can be answered from the same log; physical pruning happens in
    :meth:`sweep`.
    """

    def __init__(self) -> None:
        self._logs: dict[str, deque[float]] = {}
        self._global: deque[float] = deque()
        self._logs_lock = threading.Lock()
        self._global_lock = threading.Lock()

    def __len__(self) -> int:
        with self._logs_lock:
            return len(self._logs)

    def __contains__(self, key: object) -> bool:
        with self._logs_lock:
            return key in self._logs

    def record(self, key: str, now: float) -> None:
        """Append ``now`` to the client's log and to the global log."""

        with self._logs_lock:
            log = self._logs.get(key)
            if log is None:
                log = self._logs[key] = deque()
            log.append(now)
        with self._global_lock:
            self._global.append(now)

    def count_within(self, key: str, window_ms: float, now: float) -> int:
        """Count the client's requests with ``now - t < window_ms``."""

        with self._logs_lock:
            log = self._logs.get(key)
            if not log:
                return 0
            return len(_within(log, window_ms, now))

    def oldest_within(self, key: str, window_ms: float, now: float) -> float | None:
        """Return the oldest instant still inside the window, if any."""

        with self._logs_lock:
            for instant in self._logs.get(key, ()):
                if now - instant < window_ms:
                    return instant
        return None

    def count_global_within(self, window_ms: float, now: float) -> int:
        """Count all admitted requests with ``now - t < window_ms``."""

        with self._global_lock:
            return len(_within(self._global, window_ms, now))

    def snapshot(self, key: str) -> list[float]:
        """Copy of the client's log (oldest first)."""

        with self._logs_lock:
            return list(self._logs.get(key, ()))

    def global_size(self) -> int:
        with self._global_lock:
            return len(self._global)

    def sweep(self, now: float, retention_ms: float, global_window_ms: float) -> SweepStats:
        """Drop instants older than the retention window and empty logs.

        Args:
            now: Current instant in monotonic milliseconds.
            retention_ms: Widest per-client window in use.
            global_window_ms: Window applied to the global log.

        Returns:
            SweepStats with the number of entries and keys removed.
        """

        evicted = 0
        removed_keys = 0
        with self._logs_lock:
            for key in list(self._logs):
                log = self._logs[key]
                kept = deque(_within(log, retention_ms, now))
                evicted += len(log) - len(kept)
                if kept:
                    self._logs[key] = kept
                else:
                    del self._logs[key]
                    removed_keys += 1

        with self._global_lock:
            kept_global = deque(_within(self._global, global_window_ms, now))
            global_evicted = len(self._global) - len(kept_global)
            self._global = kept_global

        return SweepStats(
            evicted_entries=evicted,
            removed_keys=removed_keys,
            global_evicted=global_evicted,
        )
