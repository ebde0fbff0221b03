# src/task_companion/tasks/task_api.py

"""
Glue between the parsing pipeline and the store.

Parsing never writes anything: a parsed batch is kept on the state as a
preview until the user saves it (mirrors the parse -> review -> bulk-create flow).
"""

from __future__ import annotations

import logging

from ..core.state import AppState
from ..parsing.inputs import RawInput
from ..parsing.pipeline import ParseResult, parse_tasks
from ..parsing.subtasks import SubtaskSuggestion, generate_subtasks
from ..parsing.time_context import current_context

logger = logging.getLogger(__name__)


def parse_and_preview(state: AppState, raw: RawInput | None) -> ParseResult:
    """Parse input with the state's clients and keep the batch as the pending preview."""
    settings = state.settings
    result = parse_tasks(
        raw,
        llm=state.llm,
        stt=state.stt,
        tz_name=getattr(settings, "timezone", None),
        default_due_time=getattr(settings, "default_due_time", "14:00"),
    )
    state.pending_batch = list(result.tasks)
    return result


def save_pending_batch(state: AppState) -> list[int]:
    """Persist the pending batch (all or nothing) and clear it."""
    if not state.pending_batch:
        return []
    ids = state.task_store.add_parsed_tasks(state.pending_batch)
    state.pending_batch = []
    return ids


def discard_pending_batch(state: AppState) -> int:
    n = len(state.pending_batch)
    state.pending_batch = []
    return n


def generate_and_store_subtasks(state: AppState, task_id: int) -> list[SubtaskSuggestion]:
    """
    Generate subtasks for a stored task and replace its current ones.

    Raises LookupError if the task does not exist.
    """
    task = state.task_store.get_task(task_id)
    if task is None:
        raise LookupError(f"Task not found: {task_id}")

    settings = state.settings
    ctx = current_context(tz_name=getattr(settings, "timezone", None))
    suggestions = generate_subtasks(
        state.llm,
        task.title,
        task.notes,
        ctx,
        default_due_time=getattr(settings, "default_due_time", "14:00"),
    )
    state.task_store.replace_subtasks(task_id, suggestions)
    logger.info("Stored %d generated subtask(s) for task_id=%s", len(suggestions), task_id)
    return suggestions
