from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from hotkey import GlobalHotkeyAdapter


def _adapter():  # noqa: ANN202
    events = []
    adapter = GlobalHotkeyAdapter(record_key="Key.alt_r", mode_key="Key.f8")
    mock_keyboard = MagicMock()
    with patch("hotkey.keyboard", mock_keyboard):
        adapter.start(
            on_record_start=lambda: events.append("start"),
            on_record_stop=lambda: events.append("stop"),
            on_mode_toggle=lambda: events.append("mode"),
        )
    return adapter, events, mock_keyboard


def test_hold_record_key_starts_once_and_release_stops() -> None:
    adapter, events, _ = _adapter()

    adapter.handle_press("Key.alt_r")
    adapter.handle_press("Key.alt_r")
    adapter.handle_release("Key.alt_r")
    adapter.handle_release("Key.alt_r")

    assert events == ["start", "stop"]


def test_mode_key_toggles_and_other_keys_ignored() -> None:
    adapter, events, _ = _adapter()

    adapter.handle_press("Key.f8")
    adapter.handle_press("'a'")
    adapter.handle_release("'a'")

    assert events == ["mode"]


def test_stop_stops_listener() -> None:
    adapter, _, mock_keyboard = _adapter()
    listener = mock_keyboard.Listener.return_value

    adapter.stop()

    listener.start.assert_called_once()
    listener.stop.assert_called_once()


def test_start_raises_without_pynput(monkeypatch) -> None:  # noqa: ANN001
    import hotkey as hotkey_mod
    monkeypatch.setattr(hotkey_mod, "keyboard", None)

    with pytest.raises(RuntimeError, match="pynput is not installed"):
        GlobalHotkeyAdapter().start(lambda: None, lambda: None, lambda: None)
