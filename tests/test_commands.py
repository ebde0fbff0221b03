# tests/test_commands.py

from __future__ import annotations

import json
from pathlib import Path

from task_companion.cli.commands import CommandRegistry, registry
from task_companion.connectors.console_connector import to_command_line
from task_companion.core.state import AppState
from task_companion.tasks.task_models import TaskStatus

from .fakes import FakeLLMClient, FakeSpeechToText


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_plain_text_is_parsed() -> None:
    assert to_command_line("buy milk") == "/parse buy milk"
    assert to_command_line("/tasks") == "/tasks"


def test_parse_preview_then_save(state: AppState, llm: FakeLLMClient) -> None:
    llm.next_text = json.dumps(
        [
            {"title": "Buy groceries", "dueDate": "2099-01-01", "dueTime": "09:00"},
            {"title": "Call mom", "priority": "high"},
        ]
    )

    reply = registry.handle(state, "/parse buy groceries and call mom") or ""
    assert "Parsed 2 task(s)" in reply
    assert "1. Buy groceries [medium] (2099-01-01 09:00)" in reply
    assert "2. Call mom [high] (no due date)" in reply
    assert state.task_store.list_tasks() == []

    saved = registry.handle(state, "/save") or ""
    assert saved.startswith("Saved 2 task(s)")
    assert state.pending_batch == []
    assert [t.title for t in state.task_store.list_tasks()] == ["Buy groceries", "Call mom"]

    assert "Nothing to save" in (registry.handle(state, "/save") or "")


def test_parse_error_is_reported_and_nothing_is_pending(state: AppState, llm: FakeLLMClient) -> None:
    llm.next_text = "not json"
    reply = registry.handle(state, "/parse something") or ""
    assert reply.startswith("Could not parse tasks [MalformedResponse]")
    assert state.pending_batch == []


def test_completion_failure_uses_friendly_message(state: AppState, llm: FakeLLMClient) -> None:
    llm.error = RuntimeError("LLM API key is not set. Set OPENAI_API_KEY in your .env.")
    reply = registry.handle(state, "/parse something") or ""
    assert reply.startswith("Could not parse tasks [CompletionFailed]")
    assert "missing API key" in reply


def test_voice_command(tmp_path: Path, state: AppState, llm: FakeLLMClient, stt: FakeSpeechToText) -> None:
    audio = tmp_path / "memo.webm"
    audio.write_bytes(b"fake-audio")
    stt.transcript = "water the plants"
    llm.next_text = '[{"title": "Water the plants"}]'

    reply = registry.handle(state, f"/voice {audio}") or ""
    assert "Water the plants" in reply
    assert stt.calls == [(b"fake-audio", "memo.webm")]

    missing = registry.handle(state, f"/voice {tmp_path / 'nope.webm'}") or ""
    assert missing.startswith("Cannot read audio file")


def test_task_management_commands(state: AppState, llm: FakeLLMClient) -> None:
    task_id = state.task_store.add_task(title="Plan party")

    assert "Plan party" in (registry.handle(state, "/tasks") or "")
    assert registry.handle(state, "/done 999") == "Task #999 not found."
    assert registry.handle(state, f"/done {task_id}") == f"Task #{task_id} marked as completed."
    task = state.task_store.get_task(task_id)
    assert task is not None and task.status == TaskStatus.COMPLETED
    assert "[x]" in (registry.handle(state, "/tasks completed") or "")
    assert registry.handle(state, "/tasks pending") == "No tasks."

    assert registry.handle(state, f"/note {task_id} bring cake") == f"Note added to #{task_id}."

    llm.next_text = json.dumps([{"title": "Venue"}, {"title": "Food"}, {"title": "Invites"}])
    reply = registry.handle(state, f"/subtasks {task_id}") or ""
    assert "Generated 3 subtask(s)" in reply

    shown = registry.handle(state, f"/show #{task_id}") or ""
    assert "Venue" in shown and "bring cake" in shown

    assert registry.handle(state, f"/delete {task_id}") == f"Task #{task_id} deleted."
    assert registry.handle(state, f"/show {task_id}") == f"Task #{task_id} not found."
    assert registry.handle(state, "/subtasks 12345") == "Task #12345 not found."


def test_discard(state: AppState, llm: FakeLLMClient) -> None:
    llm.next_text = '[{"title": "a"}]'
    registry.handle(state, "/parse a")
    assert registry.handle(state, "/discard") == "Discarded 1 parsed task(s)."
    assert registry.handle(state, "/discard") == "Nothing to discard."
