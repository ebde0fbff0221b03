# src/task_companion/parsing/subtasks.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..core.errors import InvalidInputError, MalformedResponseError
from ..core.ports import LLMClient
from .extraction import request_completion
from .prompts import SUBTASK_SYSTEM_PROMPT, build_subtask_user_message
from .reconcile import DEFAULT_DUE_TIME, reconcile
from .schema import SubtaskCandidate, parse_json_array, validate_items
from .time_context import TimeContext

logger = logging.getLogger(__name__)

MIN_SUBTASKS = 3
MAX_SUBTASKS = 7


@dataclass(frozen=True, slots=True)
class SubtaskSuggestion:
    title: str
    due_date: str | None
    due_time: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "dueDate": self.due_date, "dueTime": self.due_time}


def generate_subtasks(
    llm: LLMClient,
    title: str,
    description: str | None,
    ctx: TimeContext,
    *,
    default_due_time: str = DEFAULT_DUE_TIME,
) -> list[SubtaskSuggestion]:
    """
    Break a task into 3-7 ordered subtasks.

    Uses the same strict array parsing and date rules as task extraction.
    Fewer than 3 subtasks is treated as a bad response; extras are cut at 7.
    """
    if not title or not title.strip():
        raise InvalidInputError("Task title is required to generate subtasks")

    raw = request_completion(
        llm,
        SUBTASK_SYSTEM_PROMPT,
        build_subtask_user_message(title.strip(), description, ctx),
    )

    items = parse_json_array(raw)
    candidates = validate_items(items, SubtaskCandidate)
    if len(candidates) < MIN_SUBTASKS:
        raise MalformedResponseError(
            f"Not enough subtasks generated ({len(candidates)} < {MIN_SUBTASKS})"
        )
    if len(candidates) > MAX_SUBTASKS:
        logger.info("Truncating %d generated subtasks to %d", len(candidates), MAX_SUBTASKS)
        candidates = candidates[:MAX_SUBTASKS]

    candidates = reconcile(candidates, ctx, default_time=default_due_time)
    return [
        SubtaskSuggestion(title=c.title.strip(), due_date=c.due_date, due_time=c.due_time)
        for c in candidates
    ]
