# src/task_companion/llm/offline.py

from __future__ import annotations

import json

from ..core.ports import ChatMessage


def _last_user_text(messages: list[ChatMessage]) -> str:
    for m in reversed(messages):
        if m.get("role") == "user":
            return m.get("content", "")
    return ""


def _field(text: str, prefix: str) -> str:
    for line in text.splitlines():
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return ""


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Behavior:
    - Task extraction prompts -> one task titled after the whole input
    - Subtask prompts -> three generic steps
    - Anything else -> an empty JSON array
    """

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        sp = (system_prompt or "").lower()
        user_text = _last_user_text(messages)

        if "task extraction module" in sp:
            utterance = _field(user_text, "Input:") or user_text.strip()
            title = utterance[:80].strip() or "Untitled Task"
            return json.dumps(
                [
                    {
                        "title": title,
                        "notes": "Created in offline mode (no LLM configured)",
                        "priority": "medium",
                    }
                ]
            )

        if "task breakdown assistant" in sp:
            title = _field(user_text, "Task Title:") or "the task"
            return json.dumps(
                [
                    {"title": f"Plan: {title}"},
                    {"title": f"Do: {title}"},
                    {"title": f"Review: {title}"},
                ]
            )

        return "[]"


class OfflineSpeechToText:
    """Speech-to-text stand-in when no API key is configured: always fails."""

    def transcribe(self, data: bytes, *, filename: str = "audio.webm") -> str:
        raise RuntimeError(
            "Speech-to-text is not configured. Set OPENAI_API_KEY in .env to enable voice input."
        )
