# src/task_companion/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM/speech providers swappable and makes testing easier.
"""

from typing import Any, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Single-shot chat completion client (OpenAI/OpenRouter-compatible)."""
    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str: ...


class SpeechToText(Protocol):
    """Audio blob in, plain transcript out."""
    def transcribe(self, data: bytes, *, filename: str = "audio.webm") -> str: ...


class TaskRepo(Protocol):
    # Task CRUD
    def add_task(
            self,
            *,
            title: str,
            notes: str = "",
            priority: Any = "medium",
            due_date: str | None = None,
            due_time: str | None = None,
            status: Any = None,  # TaskStatus (kept as Any to avoid import coupling)
            tags: list[str] | None = None,
    ) -> int: ...
    def add_parsed_tasks(self, tasks: list[Any]) -> list[int]: ...
    def get_task(self, task_id: int) -> Any | None: ...
    def list_tasks(self, *, status: Any | None = None, limit: int = 50) -> list[Any]: ...
    def update_task_fields(
            self,
            task_id: int,
            *,
            title: str | None = None,
            notes: str | None = None,
            priority: Any | None = None,
            status: Any | None = None,
            due_date: str | None = None,
            due_time: str | None = None,
            tags: list[str] | None = None,
    ) -> bool: ...
    def delete_task(self, task_id: int) -> bool: ...

    # Subtasks / notes
    def replace_subtasks(self, task_id: int, subtasks: list[Any]) -> list[int]: ...
    def list_subtasks(self, task_id: int) -> list[Any]: ...
    def add_note(self, task_id: int, content: str) -> int: ...
    def list_notes(self, task_id: int) -> list[Any]: ...
