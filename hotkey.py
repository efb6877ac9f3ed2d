"""Global hotkeys based on pynput.

The record key works push-to-sign style: holding it starts a sentence
recording, releasing it stops the recording. The mode key toggles between
word and sentence detection.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    def __init__(self, record_key: str = "Key.alt_r", mode_key: str = "Key.f8") -> None:
        self._record_key = record_key
        self._mode_key = mode_key
        self._listener: Optional[object] = None
        self._held = False
        self._lock = threading.Lock()
        self._on_record_start: Callable[[], None] = lambda: None
        self._on_record_stop: Callable[[], None] = lambda: None
        self._on_mode_toggle: Callable[[], None] = lambda: None

    def start(
        self,
        on_record_start: Callable[[], None],
        on_record_stop: Callable[[], None],
        on_mode_toggle: Callable[[], None],
    ) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._on_record_start = on_record_start
        self._on_record_stop = on_record_stop
        self._on_mode_toggle = on_mode_toggle
        self._listener = keyboard.Listener(on_press=self.handle_press, on_release=self.handle_release)
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def handle_press(self, key: object) -> None:
        name = str(key)
        if name == self._mode_key:
            self._on_mode_toggle()
            return
        if name != self._record_key:
            return
        with self._lock:
            # key repeat delivers press events while held
            if self._held:
                return
            self._held = True
        self._on_record_start()

    def handle_release(self, key: object) -> None:
        if str(key) != self._record_key:
            return
        with self._lock:
            if not self._held:
                return
            self._held = False
        self._on_record_stop()
