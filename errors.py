"""Shared error codes, user-facing messages and coded exceptions."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
CAMERA_UNAVAILABLE = "CAMERA_UNAVAILABLE"
CAPTURE_FAILED = "CAPTURE_FAILED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
INFERENCE_PROTOCOL_ERROR = "INFERENCE_PROTOCOL_ERROR"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Camera access denied. Please allow permission.",
    CAMERA_UNAVAILABLE: "No camera could be opened.",
    CAPTURE_FAILED: "Frame capture failed.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
    INFERENCE_PROTOCOL_ERROR: "Model response format is invalid.",
}

FATAL_CAPTURE_CODES = frozenset({PERMISSION_DENIED, CAMERA_UNAVAILABLE})


class CaptureError(Exception):
    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code))
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)

    @property
    def fatal(self) -> bool:
        return self.code in FATAL_CAPTURE_CODES


class InferenceError(Exception):
    def __init__(self, code: str, message: str = "", retryable: bool = False) -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code))
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        # informational only; the controller never retries
        self.retryable = retryable


class AuthError(Exception):
    pass
