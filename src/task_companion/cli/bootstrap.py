# src/task_companion/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- creates the LLM / speech-to-text clients once and wires them into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient, SpeechToText
from ..core.state import AppState
from ..llm.client import OpenAILLMClient, OpenAISpeechToText, build_openai_client
from ..llm.offline import OfflineLLMClient, OfflineSpeechToText
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client: LLMClient
    stt_client: SpeechToText
    try:
        client = build_openai_client(settings)
    except RuntimeError as e:
        # Demos / local runs without external services.
        logger.warning("%s Falling back to offline mode.", e)
        llm_client = OfflineLLMClient()
        stt_client = OfflineSpeechToText()
    else:
        llm_client = OpenAILLMClient(settings, client=client)
        stt_client = OpenAISpeechToText(settings, client=client)

    return AppState(
        settings=settings,
        llm=llm_client,
        stt=stt_client,
        task_store=TaskStore(settings.tasks_db_path),
    )
