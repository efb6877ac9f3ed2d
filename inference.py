"""Sign detection client using DashScope qwen-vl models.

Frames are sent as base64 ``data:`` URIs inside a single multimodal user
message: one image for a word, the chronological image list for a sentence.
The model is asked to answer with a JSON object which is parsed into a
``DetectionResult``. Every call is a single attempt; failures raise
``InferenceError`` and the caller decides what to do with them.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import re
from typing import Any, Dict, List, Sequence

from errors import AUTH_FAILED, INFERENCE_PROTOCOL_ERROR, NETWORK_ERROR, InferenceError
from models import DetectionResult, Frame, SignLanguage

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")

_WORD_SYSTEM = (
    "You are a helpful Sign Language Translator specialized in {lang}. "
    "You are lenient with imperfect signs and try your best to interpret the user's intent."
)

_WORD_PROMPT = (
    "Analyze this image for {lang}.\n"
    "1. Identify the hand gesture. It could be a finger-spelled letter or a whole word.\n"
    "2. If the hand shape is clear, translate it.\n"
    "3. If it looks like a natural gesture but not a strict sign, provide the closest meaning.\n"
    "4. Return isSign false ONLY if no hands are visible or the image is completely blurry.\n"
    'Answer with a JSON object: {{"isSign": bool, "translation": str, '
    '"confidence": number 0-1, "description": str}}.'
)

_SENTENCE_PROMPT = (
    "You are viewing a video sequence (chronological frames) of someone signing in {lang}.\n"
    "Translate the SEQUENCE of gestures into a complete, coherent English sentence.\n"
    "- Fix grammar and sentence structure.\n"
    "- Ignore transition frames (blur between signs).\n"
    "- If the gestures are just random, set isSign to false.\n"
    "- Return the full sentence in the translation field and a brief explanation "
    "of the gestures seen in description.\n"
    'Answer with a JSON object: {{"isSign": bool, "translation": str, '
    '"confidence": number 0-1, "description": str}}.'
)


def _frame_to_data_uri(frame: Frame) -> str:
    encoded = base64.b64encode(frame.jpeg_bytes).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


def parse_detection(text: str) -> DetectionResult:
    """Parse the model's JSON answer, tolerating markdown code fences."""
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InferenceError(INFERENCE_PROTOCOL_ERROR, f"invalid JSON from model: {exc}") from exc
    if not isinstance(data, dict) or "isSign" not in data:
        raise InferenceError(INFERENCE_PROTOCOL_ERROR, "model answer is missing isSign")
    try:
        confidence = float(data.get("confidence") or 0.0)
    except (TypeError, ValueError):
        confidence = 0.0
    description = data.get("description")
    return DetectionResult(
        is_positive=bool(data.get("isSign")),
        translation=str(data.get("translation") or ""),
        confidence=confidence,
        description=str(description) if description else None,
    )


class DashscopeInferenceClient:
    def __init__(
        self,
        api_key: str = "",
        model: str = "qwen-vl-max",
        request_timeout_s: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def detect_single(self, frame: Frame, language: SignLanguage) -> DetectionResult:
        lang = language.full_name
        messages = [
            {"role": "system", "content": [{"text": _WORD_SYSTEM.format(lang=lang)}]},
            {
                "role": "user",
                "content": [
                    {"image": _frame_to_data_uri(frame)},
                    {"text": _WORD_PROMPT.format(lang=lang)},
                ],
            },
        ]
        return self._detect(messages)

    def detect_sequence(self, frames: Sequence[Frame], language: SignLanguage) -> DetectionResult:
        if not frames:
            raise ValueError("detect_sequence needs at least one frame")
        content: List[Dict[str, str]] = [{"image": _frame_to_data_uri(f)} for f in frames]
        content.append({"text": _SENTENCE_PROMPT.format(lang=language.full_name)})
        return self._detect([{"role": "user", "content": content}])

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _detect(self, messages: List[Dict[str, Any]]) -> DetectionResult:
        if dashscope is None:
            raise InferenceError(INFERENCE_PROTOCOL_ERROR, "dashscope is not installed")
        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise InferenceError(AUTH_FAILED, "No API key configured")

        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=messages,
                result_format="message",
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            raise self._to_inference_error(exc) from exc

        status = self._field(response, "status_code")
        if status is not None and status != 200:
            message = f"{status} {self._field(response, 'code') or ''} {self._field(response, 'message') or ''}"
            raise self._to_inference_error(RuntimeError(message.strip()))

        text = self._extract_text(response)
        if not text:
            raise InferenceError(INFERENCE_PROTOCOL_ERROR, "No response text from model")
        logger.debug("model answer: %s", text)
        return parse_detection(text)

    @staticmethod
    def _field(response: object, name: str) -> Any:
        if isinstance(response, dict):
            return response.get(name)
        return getattr(response, name, None)

    def _extract_text(self, response: object) -> str:
        """Pull the answer text out of a dashscope response dict."""
        output = self._field(response, "output") or {}
        choices = output.get("choices", []) if isinstance(output, dict) else []
        if not choices:
            return ""
        message = choices[0].get("message", {})
        content = message.get("content", [])
        if isinstance(content, str):
            return content
        parts = [str(item.get("text", "")) for item in content if isinstance(item, dict)]
        return "".join(parts)

    def _to_inference_error(self, exc: Exception) -> InferenceError:
        """Map an SDK/network exception to a coded error."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low or "api-key" in low:
            return InferenceError(AUTH_FAILED, message, retryable=False)
        if "timeout" in low or "timed out" in low or "network" in low or "connection" in low:
            return InferenceError(NETWORK_ERROR, message, retryable=True)
        return InferenceError(INFERENCE_PROTOCOL_ERROR, message, retryable=True)
