"""Tests for Pyttsx3Speaker."""

from __future__ import annotations

import logging
import time
from unittest.mock import MagicMock, patch

from speech import Pyttsx3Speaker


def _wait_until(predicate, timeout: float = 2.0) -> bool:  # noqa: ANN001
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@patch("speech.pyttsx3")
def test_speak_runs_engine_with_scaled_rate(mock_tts: MagicMock) -> None:
    engine = MagicMock()
    mock_tts.init.return_value = engine

    speaker = Pyttsx3Speaker(base_rate_wpm=200)
    speaker.speak("hello", rate=1.5, pitch=1.0)

    assert _wait_until(lambda: engine.runAndWait.called)
    engine.say.assert_called_with("hello")
    engine.setProperty.assert_any_call("rate", 300)
    speaker.close()


@patch("speech.pyttsx3")
def test_blank_text_is_ignored(mock_tts: MagicMock) -> None:
    speaker = Pyttsx3Speaker()
    speaker.speak("   ")

    mock_tts.init.assert_not_called()


@patch("speech.pyttsx3", None)
def test_missing_pyttsx3_does_not_raise() -> None:
    speaker = Pyttsx3Speaker()
    speaker.speak("hello")


@patch("speech.pyttsx3")
def test_new_utterance_supersedes_pending(mock_tts: MagicMock) -> None:
    engine = MagicMock()
    mock_tts.init.return_value = engine
    spoken = []

    def slow_run() -> None:
        time.sleep(0.1)

    engine.say.side_effect = spoken.append
    engine.runAndWait.side_effect = slow_run

    speaker = Pyttsx3Speaker()
    speaker.speak("one")
    assert _wait_until(lambda: spoken == ["one"])
    speaker.speak("two")
    speaker.speak("three")

    assert _wait_until(lambda: "three" in spoken)
    assert "two" not in spoken
    speaker.close()


@patch("speech.pyttsx3")
def test_word_callback_stops_engine_when_superseded(mock_tts: MagicMock) -> None:
    engine = MagicMock()
    speaker = Pyttsx3Speaker()
    speaker._engine = engine

    speaker._on_word(None, 0, 3)
    engine.stop.assert_not_called()

    speaker._superseded.set()
    speaker._on_word(None, 0, 3)
    engine.stop.assert_called_once()


@patch("speech.pyttsx3")
def test_failed_engine_init_is_logged_once(mock_tts: MagicMock, caplog) -> None:  # noqa: ANN001
    mock_tts.init.side_effect = RuntimeError("no driver")

    speaker = Pyttsx3Speaker()
    with caplog.at_level(logging.WARNING, logger="speech"):
        speaker.speak("hello")
        assert _wait_until(lambda: speaker._unavailable)
        speaker.speak("again")

    assert mock_tts.init.call_count == 1
    assert "no driver" in caplog.text
    speaker.close()
