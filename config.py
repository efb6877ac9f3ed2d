"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

from models import SignLanguage, SpeechSettings

DEFAULT_MODEL = "qwen-vl-max"
DEFAULT_SCAN_INTERVAL_MS = 1500
DEFAULT_CAPTURE_INTERVAL_MS = 250


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "signlens" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get_api_key(self) -> str:
        return str(self._read_all().get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update(api_key=key)

    def get_model(self) -> str:
        return str(self._read_all().get("model", DEFAULT_MODEL))

    def set_model(self, model: str) -> None:
        self._update(model=model)

    def get_language(self) -> SignLanguage:
        value = self._read_all().get("language", SignLanguage.ASL.value)
        try:
            return SignLanguage(value)
        except ValueError:
            return SignLanguage.ASL

    def set_language(self, language: SignLanguage) -> None:
        self._update(language=language.value)

    def get_speech(self) -> SpeechSettings:
        data = self._read_all().get("speech", {})
        if not isinstance(data, dict):
            return SpeechSettings()
        return SpeechSettings(
            muted=bool(data.get("muted", False)),
            rate=_as_float(data.get("rate"), 1.0),
            pitch=_as_float(data.get("pitch"), 1.0),
        )

    def set_speech(self, speech: SpeechSettings) -> None:
        self._update(speech={"muted": speech.muted, "rate": speech.rate, "pitch": speech.pitch})

    def get_scan_interval_ms(self) -> int:
        return _as_int(self._read_all().get("scan_interval_ms"), DEFAULT_SCAN_INTERVAL_MS)

    def get_capture_interval_ms(self) -> int:
        return _as_int(self._read_all().get("capture_interval_ms"), DEFAULT_CAPTURE_INTERVAL_MS)

    def get_camera_index(self) -> int:
        return _as_int(self._read_all().get("camera_index"), 0)

    def set_camera_index(self, index: int) -> None:
        self._update(camera_index=index)

    def get_record_hotkey(self) -> str:
        return str(self._read_all().get("record_hotkey", "Key.alt_r"))

    def get_mode_hotkey(self) -> str:
        return str(self._read_all().get("mode_hotkey", "Key.f8"))

    def set_hotkeys(self, record_hotkey: str, mode_hotkey: str) -> None:
        self._update(record_hotkey=record_hotkey, mode_hotkey=mode_hotkey)

    def _update(self, **values: object) -> None:
        data = self._read_all()
        data.update(values)
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def _as_int(value: object, default: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
