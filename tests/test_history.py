from __future__ import annotations

import pytest

from history import HistoryLedger
from models import Mode


def test_entries_are_newest_first() -> None:
    ledger = HistoryLedger()
    first = ledger.append("HELLO", Mode.WORD, captured_at_ms=1)
    second = ledger.append("How are you?", Mode.SENTENCE, captured_at_ms=2)

    assert ledger.entries() == [second, first]
    assert ledger.last() == second
    assert len(ledger) == 2
    assert first.id != second.id


def test_blank_text_is_rejected() -> None:
    ledger = HistoryLedger()
    with pytest.raises(ValueError):
        ledger.append("  ", Mode.WORD)
    assert ledger.last() is None


def test_clear_empties_ledger() -> None:
    ledger = HistoryLedger()
    ledger.append("A", Mode.WORD)

    ledger.clear()

    assert ledger.entries() == []
    assert ledger.last() is None


def test_timestamp_defaults_to_now() -> None:
    entry = HistoryLedger().append("A", Mode.WORD)
    assert entry.captured_at_ms > 0
