# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from task_companion.core.state import AppState
from task_companion.parsing.time_context import TimeContext, current_context
from task_companion.tasks.task_store import TaskStore

from .fakes import FakeLLMClient, FakeSpeechToText

FIXED_NOW = datetime(2024, 12, 29, 9, 0, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def ctx() -> TimeContext:
    """2024-12-29 09:00 UTC."""
    return current_context(tz_name="UTC", clock=fixed_clock)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        llm_models=["fake-model"],
        timezone="UTC",
        default_due_time="14:00",
    )


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def stt() -> FakeSpeechToText:
    return FakeSpeechToText()


@pytest.fixture()
def store(tmp_path: Path) -> TaskStore:
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def state(settings: SimpleNamespace, llm: FakeLLMClient, stt: FakeSpeechToText) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep a real SQLite TaskStore here because its correctness
    is part of what we want to test.
    """
    return AppState(
        settings=settings,
        llm=llm,
        stt=stt,
        task_store=TaskStore(settings.tasks_db_path),
    )
