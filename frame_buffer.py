"""Session-scoped frame accumulator for sentence recordings."""

from __future__ import annotations

import math
from typing import List, Sequence, TypeVar

from models import Frame

MAX_SEQUENCE_FRAMES = 15

T = TypeVar("T")


def downsample(frames: Sequence[T], cap: int = MAX_SEQUENCE_FRAMES) -> List[T]:
    """Keep evenly spaced frames so that at most ``cap`` remain.

    Indices are selected with stride ``ceil(len / cap)`` starting at 0, so
    the first frame is always kept and chronological order is preserved.
    """
    if cap <= 0:
        raise ValueError("cap must be positive")
    if len(frames) <= cap:
        return list(frames)
    stride = math.ceil(len(frames) / cap)
    return [frame for i, frame in enumerate(frames) if i % stride == 0]


class FrameBuffer:
    """Ordered, unbounded list of frames.

    Not thread-safe on its own; the controller mutates it under its lock.
    """

    def __init__(self) -> None:
        self._frames: List[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def count(self) -> int:
        return len(self._frames)

    def append(self, frame: Frame) -> int:
        self._frames.append(frame)
        return len(self._frames)

    def drain(self) -> List[Frame]:
        frames = self._frames
        self._frames = []
        return frames

    def clear(self) -> None:
        self._frames = []
