"""Webcam capture source adapter."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Optional

from errors import CAMERA_UNAVAILABLE, CAPTURE_FAILED, CaptureError
from models import Frame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import cv2
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

logger = logging.getLogger(__name__)


class OpenCVCaptureSource:
    def __init__(self, index: int = 0, jpeg_quality: int = 90) -> None:
        self.index = index
        self.jpeg_quality = jpeg_quality
        self._cap: Any = None
        self._running = False
        self._lock = threading.Lock()
        self.failed_reads = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            if cv2 is None:
                raise CaptureError(CAMERA_UNAVAILABLE, "opencv-python is not installed")
            cap = cv2.VideoCapture(self.index)
            if not cap.isOpened():
                # macOS reports a denied camera permission as a device that never opens
                cap.release()
                raise CaptureError(CAMERA_UNAVAILABLE, f"could not open camera {self.index}")
            self._cap = cap
            self._running = True
            logger.info("camera %d opened", self.index)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            if self._cap is not None:
                self._cap.release()
                self._cap = None
            logger.info("camera %d released", self.index)

    def capture_once(self) -> Optional[Frame]:
        """Grab and JPEG-encode one frame; None while the camera is stopped."""
        with self._lock:
            if not self._running or self._cap is None:
                return None
            ok, image = self._cap.read()
            if not ok or image is None:
                self.failed_reads += 1
                raise CaptureError(CAPTURE_FAILED, "frame read failed")
            # raw sensor orientation, no mirroring
            encoded, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
            if not encoded:
                self.failed_reads += 1
                raise CaptureError(CAPTURE_FAILED, "jpeg encoding failed")
        payload = np.asarray(buf, dtype=np.uint8).tobytes() if np is not None else bytes(buf)
        return Frame(jpeg_bytes=payload, timestamp_ms=int(time.time() * 1000))
