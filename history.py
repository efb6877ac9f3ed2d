"""Append-only log of accepted translations for the current session."""

from __future__ import annotations

import threading
import time
from typing import List, Optional

from models import HistoryEntry, Mode


class HistoryLedger:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[HistoryEntry] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, text: str, mode: Mode, captured_at_ms: Optional[int] = None) -> HistoryEntry:
        if not text.strip():
            raise ValueError("history entries need non-empty text")
        if captured_at_ms is None:
            captured_at_ms = int(time.time() * 1000)
        entry = HistoryEntry(text=text, captured_at_ms=captured_at_ms, mode=mode)
        with self._lock:
            self._entries.append(entry)
        return entry

    def last(self) -> Optional[HistoryEntry]:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def entries(self) -> List[HistoryEntry]:
        """Newest first."""
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries = []
