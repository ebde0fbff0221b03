# src/task_companion/parsing/extraction.py

from __future__ import annotations

import logging

from ..core.errors import CompletionError
from ..core.ports import LLMClient
from .prompts import TASK_EXTRACTION_SYSTEM_PROMPT, build_extraction_user_message
from .schema import CandidateTask, parse_json_array, validate_items
from .time_context import TimeContext

logger = logging.getLogger(__name__)


def request_completion(llm: LLMClient, system_prompt: str, user_message: str) -> str:
    """One-shot completion call; collaborator failures become CompletionError."""
    try:
        raw = llm.complete([{"role": "user", "content": user_message}], system_prompt)
    except Exception as e:
        raise CompletionError(f"Completion service failed: {e}") from e
    logger.debug("Completion raw=%r", (raw or "")[:2000])
    return raw or ""


def extract_tasks(llm: LLMClient, utterance: str, ctx: TimeContext) -> list[CandidateTask]:
    """
    Ask the completion service for tasks in `utterance` and validate the reply.

    Fails atomically: a single malformed element fails the whole batch.
    Dates/times in the result are still untrusted (see reconcile.py).
    """
    user_message = build_extraction_user_message(utterance, ctx)
    raw = request_completion(llm, TASK_EXTRACTION_SYSTEM_PROMPT, user_message)

    items = parse_json_array(raw)
    candidates = validate_items(items, CandidateTask)
    logger.info("Extracted %d candidate task(s)", len(candidates))
    return candidates
