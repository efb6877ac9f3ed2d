"""State-machine based detection orchestration.

One ``DetectionController`` owns the mode, the session state, the in-flight
guard for word detection and the sentence frame buffer. Every mutation of
that state happens under a single re-entrant lock, so the controller behaves
like a single logical thread even though ticks arrive on ticker threads and
UI actions arrive on the UI thread. The inference calls are the only places
where the lock is released while work is outstanding.

Every dispatched call and every armed ticker is tagged with the epoch it was
issued under. The epoch is bumped on mode switches, recording starts, camera
stop and fatal capture errors; anything carrying an older epoch is dropped on
arrival.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from errors import CaptureError
from frame_buffer import MAX_SEQUENCE_FRAMES, FrameBuffer, downsample
from history import HistoryLedger
from interfaces import AudioNotifier, CaptureSource, InferenceClient, Ticker, TickerFactory
from models import (
    COULD_NOT_UNDERSTAND,
    NO_CLEAR_SIGN,
    DetectionResult,
    Frame,
    HistoryEntry,
    Mode,
    SessionState,
    SignLanguage,
    SpeechSettings,
)
from ticker import PeriodicTicker

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
PredictionCallback = Callable[[Optional[DetectionResult]], None]
HistoryCallback = Callable[[List[HistoryEntry]], None]
FrameCountCallback = Callable[[int], None]
ErrorCallback = Callable[[str, str], None]


def now_ms() -> int:
    return int(time.time() * 1000)


class DetectionController:
    def __init__(
        self,
        capture: CaptureSource,
        inference: InferenceClient,
        speaker: AudioNotifier,
        history: Optional[HistoryLedger] = None,
        *,
        language: SignLanguage = SignLanguage.ASL,
        mode: Mode = Mode.WORD,
        scan_interval_s: float = 1.5,
        capture_interval_s: float = 0.25,
        max_sequence_frames: int = MAX_SEQUENCE_FRAMES,
        speech: Optional[SpeechSettings] = None,
        ticker_factory: Optional[TickerFactory] = None,
        clock: Callable[[], int] = now_ms,
        on_state_change: Optional[StateCallback] = None,
        on_prediction: Optional[PredictionCallback] = None,
        on_history_change: Optional[HistoryCallback] = None,
        on_frame_count: Optional[FrameCountCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._capture = capture
        self._inference = inference
        self._speaker = speaker
        self._history = history if history is not None else HistoryLedger()
        self._scan_interval_s = scan_interval_s
        self._capture_interval_s = capture_interval_s
        self._max_sequence_frames = max_sequence_frames
        self._ticker_factory = ticker_factory or PeriodicTicker
        self._clock = clock
        self._on_state_change = on_state_change
        self._on_prediction = on_prediction
        self._on_history_change = on_history_change
        self._on_frame_count = on_frame_count
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._mode = mode
        self._language = language
        self._speech = speech or SpeechSettings()
        self._epoch = 0
        self._in_flight = False
        self._camera_active = False
        self._buffer = FrameBuffer()
        self._current_prediction: Optional[DetectionResult] = None
        self._scan_ticker: Optional[Ticker] = None
        self._capture_ticker: Optional[Ticker] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def language(self) -> SignLanguage:
        return self._language

    @property
    def speech(self) -> SpeechSettings:
        return self._speech

    @property
    def frame_count(self) -> int:
        return self._buffer.count

    @property
    def current_prediction(self) -> Optional[DetectionResult]:
        return self._current_prediction

    @property
    def camera_active(self) -> bool:
        return self._camera_active

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def history(self) -> HistoryLedger:
        return self._history

    # ------------------------------------------------------------------
    # Camera lifecycle
    # ------------------------------------------------------------------

    def start_camera(self) -> bool:
        with self._lock:
            if self._state == SessionState.ERRORED:
                return False
            if self._camera_active:
                return True
            try:
                self._capture.start()
            except CaptureError as exc:
                self._enter_error(exc.code, exc.message)
                return False
            logger.info("camera started mode=%s", self._mode.value)
            self._camera_active = True
            self._epoch += 1
            self._arm_for_mode()
            return True

    def stop_camera(self) -> None:
        """Tear down ticks and any recording; outstanding calls become stale."""
        with self._lock:
            was_active = self._camera_active
            self._epoch += 1
            self._cancel_tickers()
            self._reset_buffer()
            self._camera_active = False
            if self._state != SessionState.ERRORED:
                self._transition(SessionState.IDLE)
            if was_active:
                self._safe_stop_capture()
                logger.info("camera stopped")

    def shutdown(self) -> None:
        self.stop_camera()

    def reset_error(self) -> bool:
        with self._lock:
            if self._state != SessionState.ERRORED:
                return False
            self._transition(SessionState.IDLE)
            return True

    # ------------------------------------------------------------------
    # User controls
    # ------------------------------------------------------------------

    def set_mode(self, mode: Mode) -> bool:
        with self._lock:
            if self._state == SessionState.RECORDING:
                return False
            if mode == self._mode:
                return True
            logger.debug("mode %s -> %s", self._mode.value, mode.value)
            self._mode = mode
            self._epoch += 1
            self._cancel_tickers()
            self._reset_buffer()
            if self._state != SessionState.ERRORED:
                self._arm_for_mode()
            return True

    def toggle_mode(self) -> bool:
        with self._lock:
            target = Mode.SENTENCE if self._mode == Mode.WORD else Mode.WORD
            return self.set_mode(target)

    def set_language(self, language: SignLanguage) -> None:
        with self._lock:
            self._language = language

    def set_speech(
        self,
        muted: Optional[bool] = None,
        rate: Optional[float] = None,
        pitch: Optional[float] = None,
    ) -> SpeechSettings:
        with self._lock:
            if muted is not None:
                self._speech.muted = muted
            if rate is not None:
                self._speech.rate = rate
            if pitch is not None:
                self._speech.pitch = pitch
            return self._speech

    def replace_inference(self, inference: InferenceClient) -> None:
        """Swap the client used by future dispatches; outstanding calls keep theirs."""
        with self._lock:
            self._inference = inference

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._emit_history()

    # ------------------------------------------------------------------
    # Sentence recording
    # ------------------------------------------------------------------

    def start_recording(self) -> bool:
        with self._lock:
            if self._mode != Mode.SENTENCE or not self._camera_active:
                return False
            if self._state not in (SessionState.IDLE, SessionState.SCANNING):
                return False
            self._epoch += 1
            self._cancel_tickers()
            self._reset_buffer()
            self._transition(SessionState.RECORDING)
            self._capture_ticker = self._arm_ticker(self._capture_interval_s, self._on_capture_tick)
            return True

    def stop_recording(self) -> Optional[DetectionResult]:
        """Flush the buffer through one sequence call and return to IDLE.

        Blocks the caller for the duration of the inference call.
        """
        with self._lock:
            if self._state != SessionState.RECORDING:
                return None
            self._cancel_tickers()
            epoch = self._epoch
            language = self._language
            frames = self._buffer.drain()
            self._emit_frame_count(0)
            if not frames:
                logger.debug("recording stopped with no frames")
                self._transition(SessionState.IDLE)
                return None
            self._transition(SessionState.PROCESSING)

        batch = downsample(frames, self._max_sequence_frames)
        logger.debug("dispatching sentence: %d of %d frames", len(batch), len(frames))
        result = self._call_inference(self._inference.detect_sequence, batch, language)

        with self._lock:
            if epoch != self._epoch:
                logger.debug("discarding stale sentence result epoch=%d now=%d", epoch, self._epoch)
                return None
            if result is not None and result.accepted_text:
                self._set_prediction(result)
                self._accept(result.accepted_text, Mode.SENTENCE)
            else:
                self._set_prediction(COULD_NOT_UNDERSTAND)
            self._transition(SessionState.IDLE)
            return result

    def toggle_recording(self) -> None:
        with self._lock:
            recording = self._state == SessionState.RECORDING
            if not recording:
                self.start_recording()
                return
        self.stop_recording()

    # ------------------------------------------------------------------
    # Frame path
    # ------------------------------------------------------------------

    def handle_frame(self, frame: Frame) -> bool:
        """Per-frame callback. Returns True if the frame was consumed."""
        with self._lock:
            epoch = self._epoch
        return self._route_frame(frame, epoch)

    def capture_now(self) -> bool:
        with self._lock:
            if not self._camera_active or self._state == SessionState.ERRORED:
                return False
            epoch = self._epoch
        frame = self._capture_frame(epoch)
        if frame is None:
            return False
        return self._route_frame(frame, epoch)

    def _route_frame(self, frame: Frame, epoch: int) -> bool:
        with self._lock:
            if epoch != self._epoch or not self._camera_active:
                return False
            if self._state == SessionState.ERRORED:
                return False
            if self._mode == Mode.SENTENCE:
                if self._state != SessionState.RECORDING:
                    return False
                self._emit_frame_count(self._buffer.append(frame))
                return True
        return self._detect_word(frame, epoch)

    def _detect_word(self, frame: Frame, epoch: int) -> bool:
        with self._lock:
            if epoch != self._epoch or self._mode != Mode.WORD:
                return False
            if self._in_flight:
                logger.debug("word call outstanding, frame dropped")
                return False
            if self._state != SessionState.SCANNING:
                return False
            self._in_flight = True
            language = self._language
            self._transition(SessionState.PROCESSING)

        result = self._call_inference(self._inference.detect_single, frame, language)

        with self._lock:
            # the guard belongs to this call, whichever epoch it returns into
            self._in_flight = False
            if epoch != self._epoch:
                logger.debug("discarding stale word result epoch=%d now=%d", epoch, self._epoch)
                return True
            self._apply_word_result(result)
            self._transition(SessionState.SCANNING)
            return True

    def _apply_word_result(self, result: Optional[DetectionResult]) -> None:
        text = result.accepted_text if result is not None else ""
        if not text:
            previous = self._current_prediction
            self._set_prediction(previous.with_description(NO_CLEAR_SIGN) if previous else None)
            return
        self._set_prediction(result)
        last = self._history.last()
        if last is not None and last.text.lower() == text.lower():
            logger.debug("repeated word %r suppressed", text)
            return
        self._accept(text, Mode.WORD)

    def _call_inference(self, call, payload, language: SignLanguage) -> Optional[DetectionResult]:
        try:
            return call(payload, language)
        except Exception as exc:
            code = getattr(exc, "code", type(exc).__name__)
            logger.warning("inference failed (%s): %s", code, exc)
            return None

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def _on_scan_tick(self, epoch: int) -> None:
        with self._lock:
            if epoch != self._epoch or self._state != SessionState.SCANNING or self._in_flight:
                return
        frame = self._capture_frame(epoch)
        if frame is not None:
            self._route_frame(frame, epoch)

    def _on_capture_tick(self, epoch: int) -> None:
        with self._lock:
            if epoch != self._epoch or self._state != SessionState.RECORDING:
                return
        frame = self._capture_frame(epoch)
        if frame is not None:
            self._route_frame(frame, epoch)

    def _capture_frame(self, epoch: int) -> Optional[Frame]:
        try:
            return self._capture.capture_once()
        except CaptureError as exc:
            if not exc.fatal:
                logger.warning("capture failed (%s): %s", exc.code, exc.message)
                return None
            with self._lock:
                if epoch == self._epoch:
                    self._enter_error(exc.code, exc.message)
            return None

    def _arm_ticker(self, interval_s: float, handler: Callable[[int], None]) -> Ticker:
        epoch = self._epoch
        ticker = self._ticker_factory(interval_s, lambda: handler(epoch))
        ticker.start()
        return ticker

    def _arm_for_mode(self) -> None:
        self._cancel_tickers()
        if self._camera_active and self._mode == Mode.WORD:
            self._transition(SessionState.SCANNING)
            self._scan_ticker = self._arm_ticker(self._scan_interval_s, self._on_scan_tick)
        else:
            self._transition(SessionState.IDLE)

    def _cancel_tickers(self) -> None:
        for ticker in (self._scan_ticker, self._capture_ticker):
            if ticker is not None:
                ticker.cancel()
        self._scan_ticker = None
        self._capture_ticker = None

    # ------------------------------------------------------------------
    # Internal helpers (lock held)
    # ------------------------------------------------------------------

    def _accept(self, text: str, mode: Mode) -> None:
        self._history.append(text, mode, self._clock())
        self._speak(text)
        self._emit_history()

    def _speak(self, text: str) -> None:
        if self._speech.muted:
            return
        try:
            self._speaker.speak(text, self._speech.rate, self._speech.pitch)
        except Exception as exc:
            logger.warning("speech failed: %s", exc)

    def _enter_error(self, code: str, message: str) -> None:
        logger.warning("capture error %s: %s", code, message)
        self._epoch += 1
        self._cancel_tickers()
        self._reset_buffer()
        if self._camera_active:
            self._camera_active = False
            self._safe_stop_capture()
        self._transition(SessionState.ERRORED)
        if self._on_error:
            self._on_error(code, message)

    def _reset_buffer(self) -> None:
        had_frames = len(self._buffer) > 0
        self._buffer.clear()
        if had_frames:
            self._emit_frame_count(0)

    def _safe_stop_capture(self) -> None:
        try:
            self._capture.stop()
        except Exception as exc:
            logger.warning("capture stop failed: %s", exc)

    def _set_prediction(self, result: Optional[DetectionResult]) -> None:
        self._current_prediction = result
        if self._on_prediction:
            self._on_prediction(result)

    def _emit_history(self) -> None:
        if self._on_history_change:
            self._on_history_change(self._history.entries())

    def _emit_frame_count(self, count: int) -> None:
        if self._on_frame_count:
            self._on_frame_count(count)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("state %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
