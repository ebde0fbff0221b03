# tests/test_llm_clients.py

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from task_companion.core.errors import TranscriptionError
from task_companion.llm.client import (
    OpenAILLMClient,
    OpenAISpeechToText,
    friendly_llm_error_message,
)
from task_companion.llm.offline import OfflineLLMClient, OfflineSpeechToText
from task_companion.parsing.extraction import extract_tasks
from task_companion.parsing.inputs import AudioInput, TextInput, normalize_input
from task_companion.parsing.pipeline import parse_tasks_from_input
from task_companion.parsing.subtasks import generate_subtasks
from task_companion.parsing.time_context import TimeContext

from .conftest import fixed_clock


def _settings(**kw) -> SimpleNamespace:
    base = dict(
        llm_models=["model-a", "model-b"],
        extra_headers={},
        llm_temperature=0.3,
        llm_max_tokens=800,
        stt_model="whisper-1",
    )
    base.update(kw)
    return SimpleNamespace(**base)


def _completion(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def _status_error(cls, status: int):
    request = httpx.Request("POST", "https://llm.invalid/v1/chat/completions")
    return cls("boom", response=httpx.Response(status, request=request), body=None)


class _ScriptedCompletions:
    """Stands in for client.chat.completions: one scripted outcome per model."""

    def __init__(self, outcomes: dict[str, object]) -> None:
        self.outcomes = outcomes
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes[kwargs["model"]]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(outcomes: dict[str, object]) -> tuple[SimpleNamespace, _ScriptedCompletions]:
    completions = _ScriptedCompletions(outcomes)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_complete_sends_system_prompt_first() -> None:
    client, completions = _client({"model-a": _completion("[]"), "model-b": _completion("x")})
    llm = OpenAILLMClient(_settings(), client=client)

    assert llm.complete([{"role": "user", "content": "hi"}], "SYSTEM") == "[]"

    (call,) = completions.calls
    assert call["model"] == "model-a"
    assert call["messages"][0] == {"role": "system", "content": "SYSTEM"}
    assert call["messages"][1] == {"role": "user", "content": "hi"}
    assert call["temperature"] == 0.3


def test_falls_back_on_missing_model_and_parks_it() -> None:
    client, completions = _client(
        {"model-a": _status_error(openai.NotFoundError, 404), "model-b": _completion("ok")}
    )
    llm = OpenAILLMClient(_settings(), client=client)

    assert llm.complete([], "s") == "ok"
    assert llm.complete([], "s") == "ok"
    # model-a was tried once, then skipped.
    assert [c["model"] for c in completions.calls] == ["model-a", "model-b", "model-b"]


def test_empty_reply_falls_back_to_next_model() -> None:
    client, _ = _client({"model-a": _completion(""), "model-b": _completion("[1]")})
    assert OpenAILLMClient(_settings(), client=client).complete([], "s") == "[1]"


def test_auth_error_fails_fast() -> None:
    client, completions = _client(
        {"model-a": _status_error(openai.AuthenticationError, 401), "model-b": _completion("ok")}
    )
    with pytest.raises(RuntimeError, match="authentication failed"):
        OpenAILLMClient(_settings(), client=client).complete([], "s")
    assert len(completions.calls) == 1


def test_all_models_rate_limited() -> None:
    err = _status_error(openai.RateLimitError, 429)
    client, _ = _client({"model-a": err, "model-b": err})
    with pytest.raises(RuntimeError, match="rate-limited"):
        OpenAILLMClient(_settings(), client=client).complete([], "s")


def test_empty_model_list() -> None:
    client, _ = _client({})
    with pytest.raises(RuntimeError, match="model list is empty"):
        OpenAILLMClient(_settings(llm_models=[]), client=client).complete([], "s")


def test_speech_to_text_passes_named_buffer() -> None:
    seen: dict = {}

    def create(*, model, file):
        seen["model"] = model
        seen["name"] = file.name
        seen["data"] = file.read()
        return SimpleNamespace(text="call mom")

    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=SimpleNamespace(create=create)))
    stt = OpenAISpeechToText(_settings(), client=client)

    assert stt.transcribe(b"bytes", filename="memo.m4a") == "call mom"
    assert seen == {"model": "whisper-1", "name": "memo.m4a", "data": b"bytes"}


def test_friendly_messages() -> None:
    assert "missing API key" in friendly_llm_error_message(RuntimeError("LLM API key is not set."))
    assert friendly_llm_error_message(RuntimeError("")) == "LLM error."


def test_offline_client_drives_the_whole_pipeline() -> None:
    (task,) = parse_tasks_from_input(
        TextInput("walk the dog"),
        llm=OfflineLLMClient(),
        stt=OfflineSpeechToText(),
        tz_name="UTC",
        clock=fixed_clock,
    )
    assert task.title == "walk the dog"
    assert task.due_date is None


def test_offline_client_subtasks(ctx: TimeContext) -> None:
    out = generate_subtasks(OfflineLLMClient(), "Paint fence", None, ctx)
    assert [s.title for s in out] == ["Plan: Paint fence", "Do: Paint fence", "Review: Paint fence"]


def test_offline_extraction_truncates_long_titles(ctx: TimeContext) -> None:
    assert extract_tasks(OfflineLLMClient(), "x" * 200, ctx)[0].title == "x" * 80


def test_offline_speech_to_text_fails_cleanly() -> None:
    with pytest.raises(TranscriptionError, match="not configured"):
        normalize_input(AudioInput(b"audio"), OfflineSpeechToText())
