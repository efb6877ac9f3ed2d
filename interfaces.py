"""Protocol interfaces used by DetectionController."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from models import DetectionResult, Frame, SignLanguage, SpeechSettings


class CaptureSource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def capture_once(self) -> Optional[Frame]: ...


class InferenceClient(Protocol):
    def detect_single(self, frame: Frame, language: SignLanguage) -> DetectionResult: ...

    def detect_sequence(
        self, frames: Sequence[Frame], language: SignLanguage
    ) -> DetectionResult: ...


class AudioNotifier(Protocol):
    def speak(self, text: str, rate: float = 1.0, pitch: float = 1.0) -> None: ...


class Ticker(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TickerFactory = Callable[[float, Callable[[], None]], Ticker]


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_language(self) -> SignLanguage: ...

    def set_language(self, language: SignLanguage) -> None: ...

    def get_speech(self) -> SpeechSettings: ...

    def set_speech(self, speech: SpeechSettings) -> None: ...
