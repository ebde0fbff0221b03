# src/task_companion/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_models import NormalizedTask
from .ports import LLMClient, SpeechToText, TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    llm: LLMClient
    stt: SpeechToText
    task_store: TaskRepo

    # Last parsed batch, waiting for /save or /discard.
    pending_batch: list[NormalizedTask] = field(default_factory=list)
