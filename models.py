"""Core data models for the app."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class Mode(str, Enum):
    WORD = "WORD"
    SENTENCE = "SENTENCE"


class SessionState(str, Enum):
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    RECORDING = "RECORDING"
    PROCESSING = "PROCESSING"
    ERRORED = "ERRORED"


class SignLanguage(str, Enum):
    ASL = "ASL"
    ISL = "ISL"

    @property
    def full_name(self) -> str:
        if self is SignLanguage.ISL:
            return "Indian Sign Language (ISL)"
        return "American Sign Language (ASL)"


@dataclass
class Frame:
    jpeg_bytes: bytes
    timestamp_ms: int = 0


@dataclass(frozen=True)
class DetectionResult:
    is_positive: bool
    translation: str
    confidence: float = 0.0
    description: Optional[str] = None

    def __post_init__(self) -> None:
        # confidence is documented as [0, 1]; models occasionally answer 0-100
        conf = float(self.confidence or 0.0)
        if not math.isfinite(conf):
            conf = 0.0
        object.__setattr__(self, "confidence", min(max(conf, 0.0), 1.0))

    @property
    def accepted_text(self) -> str:
        """Translation text if this result may become a history entry, else ''."""
        if not self.is_positive:
            return ""
        return self.translation.strip()

    def with_description(self, description: str) -> "DetectionResult":
        return replace(self, description=description)


@dataclass(frozen=True)
class HistoryEntry:
    text: str
    captured_at_ms: int
    mode: Mode
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class SpeechSettings:
    muted: bool = False
    rate: float = 1.0
    pitch: float = 1.0


@dataclass
class User:
    id: str
    name: str
    email: str


NO_CLEAR_SIGN = "No clear sign detected"

COULD_NOT_UNDERSTAND = DetectionResult(
    is_positive=False,
    translation="Could not understand sentence",
    confidence=0.0,
)
