"""Tests for MainWindow widgets (offscreen Qt)."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from window import MainWindow  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


def test_speech_sliders_keep_their_step(qapp) -> None:  # noqa: ANN001
    window = MainWindow()
    changes = []
    window.rate_slider.valueChanged.connect(changes.append)

    window.set_speech(False, 0.57, 1.13)

    assert window.rate_slider.value() == 57
    assert window.pitch_slider.value() == 113
    assert changes == [57]

    window.set_speech(False, window.rate_slider.value() / 100.0, 1.13)
    assert changes == [57]
