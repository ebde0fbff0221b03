# tests/test_inputs.py

from __future__ import annotations

import pytest

from task_companion.core.errors import InvalidInputError, TranscriptionError
from task_companion.parsing.inputs import (
    AudioInput,
    TextInput,
    normalize_input,
    raw_input_from_fields,
)

from .fakes import FakeSpeechToText


def test_text_is_trimmed(stt: FakeSpeechToText) -> None:
    assert normalize_input(TextInput("  buy milk \n"), stt) == "buy milk"
    assert stt.calls == []


def test_blank_text_is_invalid(stt: FakeSpeechToText) -> None:
    with pytest.raises(InvalidInputError):
        normalize_input(TextInput("   "), stt)


def test_missing_input_is_invalid(stt: FakeSpeechToText) -> None:
    with pytest.raises(InvalidInputError):
        normalize_input(None, stt)
    assert stt.calls == []


def test_audio_is_transcribed() -> None:
    stt = FakeSpeechToText(transcript="  call mom tomorrow  ")
    out = normalize_input(AudioInput(b"RIFF....", filename="note.wav"), stt)

    assert out == "call mom tomorrow"
    assert stt.calls == [(b"RIFF....", "note.wav")]


def test_empty_transcript_fails() -> None:
    stt = FakeSpeechToText(transcript="   ")
    with pytest.raises(TranscriptionError):
        normalize_input(AudioInput(b"data"), stt)


def test_stt_error_is_wrapped() -> None:
    stt = FakeSpeechToText(error=ConnectionError("boom"))
    with pytest.raises(TranscriptionError) as exc_info:
        normalize_input(AudioInput(b"data"), stt)

    assert exc_info.value.kind == "TranscriptionFailed"
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_empty_audio_is_invalid_without_calling_stt(stt: FakeSpeechToText) -> None:
    with pytest.raises(InvalidInputError):
        normalize_input(AudioInput(b""), stt)
    assert stt.calls == []


def test_raw_input_from_fields() -> None:
    assert raw_input_from_fields(text="hello") == TextInput("hello")
    assert raw_input_from_fields(audio=b"x", audio_filename="a.mp3") == AudioInput(b"x", "a.mp3")
    # audio wins when both are given
    assert isinstance(raw_input_from_fields(text="hello", audio=b"x"), AudioInput)
    assert raw_input_from_fields() is None
    assert raw_input_from_fields(text="  ") is None
