"""Tests for OpenCVCaptureSource."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from camera import OpenCVCaptureSource
from errors import CAMERA_UNAVAILABLE, CAPTURE_FAILED, CaptureError
from models import Frame


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

def _mock_cv2(opened: bool = True, read=(True, object()), encoded=(True, b"\xff\xd8data")) -> MagicMock:  # noqa: ANN001
    mock_cv2 = MagicMock()
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.return_value = read
    mock_cv2.VideoCapture.return_value = cap
    mock_cv2.imencode.return_value = encoded
    mock_cv2.IMWRITE_JPEG_QUALITY = 1
    return mock_cv2


# ---------------------------------------------------------------
# Start / stop
# ---------------------------------------------------------------

def test_start_opens_device_and_stop_releases() -> None:
    mock_cv2 = _mock_cv2()
    with patch("camera.cv2", mock_cv2):
        source = OpenCVCaptureSource(index=2)
        source.start()

        mock_cv2.VideoCapture.assert_called_once_with(2)
        assert source.running is True

        source.stop()
        mock_cv2.VideoCapture.return_value.release.assert_called_once()
        assert source.running is False


def test_start_and_stop_are_idempotent() -> None:
    mock_cv2 = _mock_cv2()
    with patch("camera.cv2", mock_cv2):
        source = OpenCVCaptureSource()
        source.start()
        source.start()
        source.stop()
        source.stop()

    assert mock_cv2.VideoCapture.call_count == 1
    assert mock_cv2.VideoCapture.return_value.release.call_count == 1


def test_unopenable_device_raises_fatal_error() -> None:
    with patch("camera.cv2", _mock_cv2(opened=False)):
        source = OpenCVCaptureSource()
        with pytest.raises(CaptureError) as info:
            source.start()

    assert info.value.code == CAMERA_UNAVAILABLE
    assert info.value.fatal is True
    assert source.running is False


def test_start_raises_without_opencv(monkeypatch) -> None:  # noqa: ANN001
    import camera as cam_mod
    monkeypatch.setattr(cam_mod, "cv2", None)

    with pytest.raises(CaptureError, match="opencv-python is not installed"):
        OpenCVCaptureSource().start()


# ---------------------------------------------------------------
# capture_once
# ---------------------------------------------------------------

def test_capture_once_returns_jpeg_frame() -> None:
    mock_cv2 = _mock_cv2()
    with patch("camera.cv2", mock_cv2), patch("camera.np", None):
        source = OpenCVCaptureSource(jpeg_quality=75)
        source.start()
        frame = source.capture_once()

    assert isinstance(frame, Frame)
    assert frame.jpeg_bytes == b"\xff\xd8data"
    assert frame.timestamp_ms > 0
    assert mock_cv2.imencode.call_args.args[2] == [1, 75]


def test_capture_before_start_returns_none() -> None:
    with patch("camera.cv2", _mock_cv2()):
        assert OpenCVCaptureSource().capture_once() is None


def test_failed_read_raises_non_fatal_error() -> None:
    with patch("camera.cv2", _mock_cv2(read=(False, None))):
        source = OpenCVCaptureSource()
        source.start()
        with pytest.raises(CaptureError) as info:
            source.capture_once()

    assert info.value.code == CAPTURE_FAILED
    assert info.value.fatal is False
    assert source.failed_reads == 1


def test_capture_after_stop_is_noop() -> None:
    mock_cv2 = _mock_cv2()
    with patch("camera.cv2", mock_cv2):
        source = OpenCVCaptureSource()
        source.start()
        source.stop()

        assert source.capture_once() is None
    mock_cv2.VideoCapture.return_value.read.assert_not_called()
