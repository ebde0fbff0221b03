# src/task_companion/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKS"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- LLM (OpenAI-compatible) ----
    openai_api_key: str | None
    llm_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]
    llm_temperature: float
    llm_max_tokens: int

    # ---- Speech-to-text ----
    stt_model: str

    # ---- Parsing ----
    timezone: str | None
    default_due_time: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-companion")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasks"))
        tasks_db_path = _env_path(_k("DB_PATH"), data_dir / "tasks.sqlite3")

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        llm_base_url = _env(_k("LLM_BASE_URL"), "https://api.openai.com/v1")

        # OpenRouter wants these; plain OpenAI ignores them.
        extra_headers: dict[str, str] = {}
        http_referer = _env(_k("HTTP_REFERER"), "")
        if http_referer.strip():
            extra_headers["HTTP-Referer"] = http_referer.strip()
            extra_headers["X-Title"] = _env(_k("APP_TITLE"), app_name)

        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o-mini", "gpt-3.5-turbo"])
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.3)
        llm_max_tokens = _env_int(_k("LLM_MAX_TOKENS"), 800)

        stt_model = _env(_k("STT_MODEL"), "whisper-1")

        timezone = (_first_env(_k("TIMEZONE"), "TZ", default="") or "").strip() or None
        default_due_time = _env(_k("DEFAULT_DUE_TIME"), "14:00").strip() or "14:00"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            openai_api_key=openai_api_key,
            llm_base_url=llm_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            llm_temperature=llm_temperature,
            llm_max_tokens=llm_max_tokens,
            stt_model=stt_model,
            timezone=timezone,
            default_due_time=default_due_time,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
