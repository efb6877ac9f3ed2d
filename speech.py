"""Text-to-speech audio notifier based on pyttsx3.

A single worker thread owns the engine; pyttsx3 engines must stay on the
thread that created them. ``speak`` never blocks: it replaces any pending
utterance and asks the engine to cut the current one short.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Optional, Tuple

try:
    import pyttsx3
except Exception:  # pragma: no cover
    pyttsx3 = None  # type: ignore

logger = logging.getLogger(__name__)

Utterance = Tuple[str, float, float]


class Pyttsx3Speaker:
    def __init__(self, base_rate_wpm: int = 180, volume: float = 1.0) -> None:
        self._base_rate_wpm = base_rate_wpm
        self._volume = volume
        self._queue: "queue.Queue[Optional[Utterance]]" = queue.Queue()
        self._superseded = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._engine: Any = None
        self._unavailable = False

    def speak(self, text: str, rate: float = 1.0, pitch: float = 1.0) -> None:
        text = str(text or "").strip()
        if not text:
            return
        if pyttsx3 is None:
            logger.warning("pyttsx3 is not installed, would say: %s", text)
            return
        if self._unavailable:
            logger.debug("no speech engine, would say: %s", text)
            return
        self._ensure_worker()
        with self._lock:
            self._drain_pending()
            self._superseded.set()
            self._queue.put((text, rate, pitch))

    def close(self) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
            if thread is None:
                return
            self._drain_pending()
            self._superseded.set()
            self._queue.put(None)
        thread.join(timeout=1.0)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self._worker, name="tts-worker", daemon=True)
            self._thread.start()

    def _drain_pending(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def _worker(self) -> None:
        try:
            engine = pyttsx3.init()
        except Exception as exc:
            logger.warning("speech engine unavailable: %s", exc)
            self._unavailable = True
            with self._lock:
                self._drain_pending()
            return
        engine.setProperty("volume", self._volume)
        # a newer utterance stops the current one at the next word boundary
        engine.connect("started-word", self._on_word)
        self._engine = engine
        while True:
            item = self._queue.get()
            if item is None:
                break
            self._superseded.clear()
            text, rate, pitch = item
            self._say(engine, text, rate, pitch)
        self._engine = None

    def _say(self, engine: Any, text: str, rate: float, pitch: float) -> None:
        engine.setProperty("rate", int(self._base_rate_wpm * rate))
        if pitch != 1.0:
            # pyttsx3 drivers expose no pitch property
            logger.debug("pitch %.2f requested, not supported by pyttsx3", pitch)
        try:
            engine.say(text)
            engine.runAndWait()
        except RuntimeError as exc:
            logger.warning("speech failed: %s", exc)

    def _on_word(self, name: Any, location: int, length: int) -> None:
        if self._superseded.is_set() and self._engine is not None:
            self._engine.stop()
