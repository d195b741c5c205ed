"""Repeating background task that runs the eviction sweep."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Run ``callback`` every ``interval_seconds`` on a daemon thread.

    The thread waits on an event between passes, so :meth:`stop` returns as
    soon as the current pass (if any) completes instead of sleeping out the
    interval. Each thread owns its stop event: a thread that outlives a timed
    out :meth:`stop` finishes its pass and exits, even if :meth:`start` has
    since launched a replacement.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        *,
        interval_seconds: float = 60.0,
        name: str = "rate-limit-sweeper",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._callback = callback
        self._interval = interval_seconds
        self._name = name
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        thread, stop_event = self._thread, self._stop_event
        return (
            thread is not None
            and thread.is_alive()
            and stop_event is not None
            and not stop_event.is_set()
        )

    def start(self) -> None:
        """Start the background thread; a no-op when already running."""

        with self._lock:
            if self.running:
                return
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run, args=(stop_event,), name=self._name, daemon=True
            )
            self._thread.start()
        logger.info("sweep.started", extra={"interval_s": self._interval})

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the thread to exit and wait for it."""

        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            if stop_event is not None:
                stop_event.set()
        if thread is None:
            return

        thread.join(timeout)
        if thread.is_alive():
            logger.warning("sweep.stop_timeout", extra={"timeout_s": timeout})
            return
        with self._lock:
            if self._thread is thread:
                self._thread = None
                self._stop_event = None
        logger.info("sweep.stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception:
                # Thread must survive a failed pass
                logger.exception("sweep.failed")
