# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from task_companion.cli.bootstrap import create_initial_state
from task_companion.config import Settings
from task_companion.llm.client import OpenAILLMClient, OpenAISpeechToText
from task_companion.llm.offline import OfflineLLMClient, OfflineSpeechToText


def _settings(tmp_path: Path, api_key: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        data_dir=tmp_path / "data",
        tasks_db_path=tmp_path / "data" / "db" / "tasks.sqlite3",
        openai_api_key=api_key,
        llm_base_url="https://api.openai.com/v1",
        llm_models=["gpt-4o-mini"],
        extra_headers={},
        llm_temperature=0.3,
        llm_max_tokens=800,
        stt_model="whisper-1",
        timezone=None,
        default_due_time="14:00",
    )


def test_without_api_key_runs_offline(tmp_path: Path) -> None:
    state = create_initial_state(settings=_settings(tmp_path, None))

    assert isinstance(state.llm, OfflineLLMClient)
    assert isinstance(state.stt, OfflineSpeechToText)
    assert (tmp_path / "data" / "db" / "tasks.sqlite3").exists()


def test_with_api_key_shares_one_client(tmp_path: Path) -> None:
    state = create_initial_state(settings=_settings(tmp_path, "sk-test"))

    assert isinstance(state.llm, OpenAILLMClient)
    assert isinstance(state.stt, OpenAISpeechToText)
    assert state.llm._client is state.stt._client


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKS_LLM_MODELS", "model-a, model-b")
    monkeypatch.setenv("TASKS_LLM_TEMPERATURE", "not-a-number")
    monkeypatch.setenv("TASKS_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("TASKS_HTTP_REFERER", "https://example.com")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.delenv("TASKS_OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("TASKS_DB_PATH", raising=False)

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.llm_models == ["model-a", "model-b"]
    assert s.llm_temperature == 0.3
    assert s.timezone == "Europe/Berlin"
    assert s.openai_api_key == "sk-env"
    assert s.extra_headers["HTTP-Referer"] == "https://example.com"
    assert s.default_due_time == "14:00"
