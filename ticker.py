"""Cancellable periodic trigger backed by a daemon thread."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTicker:
    def __init__(self, interval_s: float, callback: Callable[[], None], name: str = "ticker") -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.interval_s = interval_s
        self._callback = callback
        self._name = name
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def start(self) -> None:
        with self._lock:
            if self._stop_event is not None and not self._stop_event.is_set():
                return
            # each run gets its own event so a restarted ticker never revives an old thread
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run, args=(stop_event,), name=self._name, daemon=True
            )
            self._thread.start()

    def cancel(self) -> None:
        """Stop scheduling ticks. A callback already running is not interrupted."""
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()
            self._thread = None

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_s):
            with self._lock:
                if stop_event.is_set():
                    return
            try:
                self._callback()
            except Exception:
                logger.exception("%s callback failed", self._name)
