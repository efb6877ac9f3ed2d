"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys
import threading

from auth import JsonAuthStore
from camera import OpenCVCaptureSource
from config import JsonConfigStore
from detection_controller import DetectionController
from errors import ERROR_MESSAGES
from history import HistoryLedger
from hotkey import GlobalHotkeyAdapter
from inference import DashscopeInferenceClient
from models import Mode, SessionState
from speech import Pyttsx3Speaker
from window import LoginDialog, MainWindow

try:
    from PySide6.QtCore import QObject, Signal
    from PySide6.QtWidgets import QApplication, QDialog, QInputDialog
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


class UIBridge(QObject):
    state_signal = Signal(str, str)  # from_state, to_state
    prediction_signal = Signal(object)
    history_signal = Signal(object)
    frame_count_signal = Signal(int)
    error_signal = Signal(str)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        self.auth_store = JsonAuthStore()
        self.window = MainWindow()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.prediction_signal.connect(self.window.set_prediction)
        self.ui.history_signal.connect(self.window.set_history)
        self.ui.frame_count_signal.connect(self.window.set_frame_count)
        self.ui.error_signal.connect(self.window.show_error)

        self.speaker = Pyttsx3Speaker()
        self.controller = DetectionController(
            capture=OpenCVCaptureSource(index=self.config_store.get_camera_index()),
            inference=DashscopeInferenceClient(
                api_key=self.config_store.get_api_key(),
                model=self.config_store.get_model(),
            ),
            speaker=self.speaker,
            history=HistoryLedger(),
            language=self.config_store.get_language(),
            scan_interval_s=self.config_store.get_scan_interval_ms() / 1000.0,
            capture_interval_s=self.config_store.get_capture_interval_ms() / 1000.0,
            speech=self.config_store.get_speech(),
            on_state_change=self._on_state_change,
            on_prediction=self.ui.prediction_signal.emit,
            on_history_change=self.ui.history_signal.emit,
            on_frame_count=self.ui.frame_count_signal.emit,
            on_error=self._on_error,
        )
        self.hotkey = GlobalHotkeyAdapter(
            record_key=self.config_store.get_record_hotkey(),
            mode_key=self.config_store.get_mode_hotkey(),
        )
        self._wire_controls()
        self._refresh()

    def _wire_controls(self) -> None:
        w = self.window
        w.camera_button.clicked.connect(self._toggle_camera)
        w.word_button.clicked.connect(lambda: self._set_mode(Mode.WORD))
        w.sentence_button.clicked.connect(lambda: self._set_mode(Mode.SENTENCE))
        w.language_box.currentIndexChanged.connect(self._set_language)
        w.record_button.clicked.connect(self._toggle_recording)
        w.capture_button.clicked.connect(self._capture_now)
        w.mute_button.clicked.connect(self._toggle_mute)
        w.rate_slider.valueChanged.connect(lambda v: self._update_speech(rate=v / 100.0))
        w.pitch_slider.valueChanged.connect(lambda v: self._update_speech(pitch=v / 100.0))
        w.clear_button.clicked.connect(self.controller.clear_history)
        w.logout_button.clicked.connect(self.logout)

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(ERROR_MESSAGES.get(code, message))

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        self._refresh()

    def _refresh(self) -> None:
        c = self.controller
        self.window.set_language(c.language)
        self.window.set_speech(c.speech.muted, c.speech.rate, c.speech.pitch)
        self.window.set_state(c.state, c.mode, c.camera_active)
        self.window.set_frame_count(c.frame_count)

    def _toggle_camera(self) -> None:
        if self.controller.camera_active:
            self.controller.stop_camera()
        else:
            self.controller.reset_error()
            self.controller.start_camera()
        self._refresh()

    def _set_mode(self, mode: Mode) -> None:
        self.controller.set_mode(mode)
        self._refresh()

    def _set_language(self, index: int) -> None:
        language = self.window.language_box.itemData(index)
        if language is None:
            return
        self.controller.set_language(language)
        self.config_store.set_language(language)
        self._refresh()

    def _toggle_recording(self) -> None:
        if self.controller.state == SessionState.RECORDING:
            self._stop_recording_async()
        else:
            self.controller.start_recording()

    def _stop_recording_async(self) -> None:
        # stop_recording waits on the model; keep it off the Qt main thread
        threading.Thread(target=self.controller.stop_recording, daemon=True).start()

    def _capture_now(self) -> None:
        threading.Thread(target=self.controller.capture_now, daemon=True).start()

    def _toggle_mute(self) -> None:
        self._update_speech(muted=not self.controller.speech.muted)
        self._refresh()

    def _update_speech(self, **values) -> None:  # noqa: ANN003
        self.config_store.set_speech(self.controller.set_speech(**values))

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _ensure_api_key(self) -> None:
        if self.config_store.get_api_key() or os.getenv("DASHSCOPE_API_KEY"):
            return
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if ok and value:
            self.config_store.set_api_key(value)
            # Hot-swap inference client with new key
            self.controller.replace_inference(
                DashscopeInferenceClient(api_key=value, model=self.config_store.get_model())
            )

    def _sign_in(self) -> bool:
        user = self.auth_store.current_user()
        if user is None:
            dialog = LoginDialog(self.auth_store)
            if dialog.exec() != QDialog.Accepted:
                return False
            user = dialog.user
        self.window.set_user(user)
        self.window.set_history(self.controller.history.entries())
        self.window.show()
        return True

    def logout(self) -> None:
        self.controller.shutdown()
        self.controller.clear_history()
        self.auth_store.logout()
        self.window.hide()
        if not self._sign_in():
            self.quit()

    def run(self) -> int:
        if not self._sign_in():
            return 0
        self._ensure_api_key()
        try:
            self.hotkey.start(
                on_record_start=self.controller.start_recording,
                on_record_stop=self._stop_recording_async,
                on_mode_toggle=self.controller.toggle_mode,
            )
        except Exception as exc:
            logger.warning("global hotkey unavailable: %s", exc)
            self.window.show_error(f"Hotkey disabled: {exc}")
        self.app.aboutToQuit.connect(self._cleanup)
        return self.app.exec()

    def _cleanup(self) -> None:
        self.hotkey.stop()
        self.controller.shutdown()
        self.speaker.close()

    def quit(self) -> None:
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=os.getenv("SIGNLENS_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
