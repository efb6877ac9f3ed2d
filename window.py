"""Main window and sign-in dialog."""

from __future__ import annotations

import time
from typing import List, Optional

from errors import AuthError
from models import DetectionResult, HistoryEntry, Mode, SessionState, SignLanguage, User

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import (
        QComboBox,
        QDialog,
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QListWidget,
        QPushButton,
        QSlider,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QComboBox = object  # type: ignore
    QDialog = object  # type: ignore
    QHBoxLayout = object  # type: ignore
    QLabel = object  # type: ignore
    QLineEdit = object  # type: ignore
    QListWidget = object  # type: ignore
    QPushButton = object  # type: ignore
    QSlider = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore


_CARD_STYLE = "color: white; background: rgba(15,23,42,230); border-radius: 12px; padding: 12px;"
_ERROR_STYLE = "color: #FF6B6B; font-size: 13px;"


class MainWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("SignLens")
        self.setMinimumWidth(720)

        self.status_label = QLabel("IDLE")
        self.user_label = QLabel("")
        self.logout_button = QPushButton("Logout")

        self.camera_button = QPushButton("Start camera")
        self.word_button = QPushButton("Word")
        self.sentence_button = QPushButton("Sentence")
        for button in (self.camera_button, self.word_button, self.sentence_button):
            button.setCheckable(True)
        self.language_box = QComboBox()
        for language in SignLanguage:
            self.language_box.addItem(language.value, language)
        self.record_button = QPushButton("Record")
        self.capture_button = QPushButton("Capture now")
        self.mute_button = QPushButton("Mute")
        self.mute_button.setCheckable(True)
        self.clear_button = QPushButton("Clear history")
        self.rate_slider = self._speech_slider()
        self.pitch_slider = self._speech_slider()
        self.frame_label = QLabel("")

        self.prediction_title = QLabel("")
        self.prediction_label = QLabel("")
        self.prediction_label.setAlignment(Qt.AlignCenter)
        self.prediction_label.setWordWrap(True)
        self.description_label = QLabel("")
        self.description_label.setWordWrap(True)
        self.confidence_label = QLabel("")
        self.error_label = QLabel("")
        self.error_label.setStyleSheet(_ERROR_STYLE)

        self.history_list = QListWidget()

        header = QHBoxLayout()
        header.addWidget(self.status_label)
        header.addStretch(1)
        header.addWidget(self.user_label)
        header.addWidget(self.logout_button)

        controls = QHBoxLayout()
        for widget in (
            self.camera_button,
            self.word_button,
            self.sentence_button,
            self.language_box,
            self.record_button,
            self.capture_button,
            self.mute_button,
        ):
            controls.addWidget(widget)

        speech = QHBoxLayout()
        speech.addWidget(QLabel("Rate"))
        speech.addWidget(self.rate_slider)
        speech.addWidget(QLabel("Pitch"))
        speech.addWidget(self.pitch_slider)
        speech.addWidget(self.frame_label)

        card = QWidget()
        card.setStyleSheet(_CARD_STYLE)
        card_layout = QVBoxLayout(card)
        for widget in (
            self.prediction_title,
            self.prediction_label,
            self.description_label,
            self.confidence_label,
        ):
            card_layout.addWidget(widget)

        history_header = QHBoxLayout()
        history_header.addWidget(QLabel("Session History"))
        history_header.addStretch(1)
        history_header.addWidget(self.clear_button)

        layout = QVBoxLayout()
        layout.addLayout(header)
        layout.addLayout(controls)
        layout.addLayout(speech)
        layout.addWidget(self.error_label)
        layout.addWidget(card)
        layout.addLayout(history_header)
        layout.addWidget(self.history_list, 1)
        self.setLayout(layout)

        self._mode = Mode.WORD
        self._language = SignLanguage.ASL

    def _speech_slider(self) -> QSlider:
        slider = QSlider(Qt.Horizontal)
        slider.setRange(50, 200)
        slider.setValue(100)
        return slider

    def set_user(self, user: Optional[User]) -> None:
        self.user_label.setText(f"Logged in as {user.name}" if user else "")

    def set_language(self, language: SignLanguage) -> None:
        self._language = language
        self.language_box.setCurrentIndex(self.language_box.findData(language))

    def set_speech(self, muted: bool, rate: float, pitch: float) -> None:
        self.mute_button.setChecked(muted)
        self.mute_button.setText("Unmute" if muted else "Mute")
        self.rate_slider.setValue(round(rate * 100))
        self.pitch_slider.setValue(round(pitch * 100))

    def set_state(self, state: SessionState, mode: Mode, camera_active: bool) -> None:
        self._mode = mode
        recording = state == SessionState.RECORDING
        label = "● RECORDING" if recording else f"{mode.value} MODE"
        if state == SessionState.PROCESSING:
            label += "  ·  AI PROCESSING..."
        self.status_label.setText(label)

        self.camera_button.setChecked(camera_active)
        self.camera_button.setText("Stop camera" if camera_active else "Start camera")
        self.word_button.setChecked(mode == Mode.WORD)
        self.sentence_button.setChecked(mode == Mode.SENTENCE)
        # mode is locked while a recording runs
        self.word_button.setEnabled(not recording)
        self.sentence_button.setEnabled(not recording)
        self.record_button.setVisible(mode == Mode.SENTENCE)
        self.record_button.setEnabled(camera_active and state != SessionState.PROCESSING)
        self.record_button.setText("Stop & translate" if recording else "Record")
        self.capture_button.setEnabled(camera_active)
        self.frame_label.setVisible(mode == Mode.SENTENCE)
        if state != SessionState.ERRORED:
            self.error_label.setText("")

        title = "Translated Sentence" if mode == Mode.SENTENCE else "Detected Sign"
        self.prediction_title.setText(f"{title} ({self._language.value})")
        if not self.prediction_label.text():
            self._show_placeholder(state)

    def set_prediction(self, result: Optional[DetectionResult]) -> None:
        if result is None or not result.is_positive:
            self.prediction_label.setStyleSheet("font-size: 20px; font-style: italic;")
            self.prediction_label.setText(result.translation if result else "")
            self.description_label.setText((result.description or "") if result else "")
            self.confidence_label.setText("")
            return
        size = 28 if self._mode == Mode.SENTENCE else 56
        self.prediction_label.setStyleSheet(f"font-size: {size}px; font-weight: 900;")
        self.prediction_label.setText(result.translation)
        self.description_label.setText(result.description or "")
        self.confidence_label.setText(f"Confidence: {result.confidence * 100:.0f}%")

    def set_history(self, entries: List[HistoryEntry]) -> None:
        self.history_list.clear()
        if not entries:
            self.history_list.addItem("No translations yet.")
            return
        for entry in entries:
            stamp = time.strftime("%H:%M:%S", time.localtime(entry.captured_at_ms / 1000))
            self.history_list.addItem(f"[{entry.mode.value}] {stamp}  {entry.text}")

    def set_frame_count(self, count: int) -> None:
        self.frame_label.setText(f"{count} frames")

    def show_error(self, message: str) -> None:
        self.error_label.setText(f"⚠️ {message}")

    def _show_placeholder(self, state: SessionState) -> None:
        if state == SessionState.RECORDING:
            self.description_label.setText("Recording gestures...")
        elif self._mode == Mode.WORD:
            self.description_label.setText(f"Waiting for clear {self._language.value} sign...")
        else:
            self.description_label.setText("Press Record to start signing")


class LoginDialog(QDialog):
    """Sign in or register against the local account store."""

    def __init__(self, auth_store) -> None:  # noqa: ANN001
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self._auth = auth_store
        self.user: Optional[User] = None
        self.setWindowTitle("SignLens · Sign in")

        self._name = QLineEdit()
        self._name.setPlaceholderText("Name (register only)")
        self._email = QLineEdit()
        self._email.setPlaceholderText("Email")
        self._password = QLineEdit()
        self._password.setPlaceholderText("Password")
        self._password.setEchoMode(QLineEdit.Password)
        self._error = QLabel("")
        self._error.setStyleSheet(_ERROR_STYLE)

        login_button = QPushButton("Sign in")
        login_button.clicked.connect(self._login)
        register_button = QPushButton("Register")
        register_button.clicked.connect(self._register)

        buttons = QHBoxLayout()
        buttons.addWidget(login_button)
        buttons.addWidget(register_button)

        layout = QVBoxLayout()
        for widget in (self._name, self._email, self._password, self._error):
            layout.addWidget(widget)
        layout.addLayout(buttons)
        self.setLayout(layout)

    def _login(self) -> None:
        try:
            self.user = self._auth.login(self._email.text(), self._password.text())
        except AuthError as exc:
            self._error.setText(str(exc))
            return
        self.accept()

    def _register(self) -> None:
        try:
            self.user = self._auth.register(self._name.text(), self._email.text(), self._password.text())
        except AuthError as exc:
            self._error.setText(str(exc))
            return
        self.accept()
