# src/task_companion/parsing/inputs.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.errors import InvalidInputError, TranscriptionError
from ..core.ports import SpeechToText

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TextInput:
    value: str


@dataclass(frozen=True, slots=True)
class AudioInput:
    data: bytes
    filename: str = "audio.webm"


RawInput = TextInput | AudioInput


def raw_input_from_fields(
    *,
    text: str | None = None,
    audio: bytes | None = None,
    audio_filename: str = "audio.webm",
) -> RawInput | None:
    """
    Build a RawInput from the two optional form fields.

    Audio wins when both are present. Returns None when neither is given;
    normalize_input() turns that into InvalidInputError.
    """
    if audio:
        return AudioInput(data=audio, filename=audio_filename)
    if text is not None and text.strip():
        return TextInput(value=text)
    return None


def normalize_input(raw: RawInput | None, stt: SpeechToText) -> str:
    """Unify text and voice input into one plain-text utterance."""
    if raw is None:
        raise InvalidInputError("No input provided")

    if isinstance(raw, TextInput):
        value = (raw.value or "").strip()
        if not value:
            raise InvalidInputError("Text input is empty")
        logger.debug("Input: text (%d chars)", len(value))
        return value

    if isinstance(raw, AudioInput):
        if not raw.data:
            raise InvalidInputError("Audio input is empty")

        logger.info("Input: audio %s (%d bytes), transcribing...", raw.filename, len(raw.data))
        try:
            transcript = stt.transcribe(raw.data, filename=raw.filename)
        except Exception as e:
            raise TranscriptionError(f"Speech-to-text failed: {e}") from e

        transcript = (transcript or "").strip()
        if not transcript:
            raise TranscriptionError("Speech-to-text returned an empty transcript")

        logger.debug("Transcribed audio: %r", transcript[:500])
        return transcript

    raise InvalidInputError(f"Unsupported input type: {type(raw).__name__}")
