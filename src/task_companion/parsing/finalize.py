# src/task_companion/parsing/finalize.py

from __future__ import annotations

import secrets
from collections.abc import Callable

from ..core.errors import EmptyBatchError, IdAssignmentError
from ..tasks.task_models import NormalizedTask, Priority
from .schema import CandidateTask

UNTITLED_TASK = "Untitled Task"

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_ID_LENGTH = 9
_MAX_ID_ATTEMPTS = 1000


def random_task_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def _batch_id_generator(id_factory: Callable[[], str]) -> Callable[[], str]:
    """Wrap id_factory so it never repeats within one batch."""
    seen: set[str] = set()

    def next_id() -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = id_factory()
            if candidate not in seen:
                seen.add(candidate)
                return candidate
        raise IdAssignmentError(f"id factory returned duplicates {_MAX_ID_ATTEMPTS} times in a row")

    return next_id


def finalize(
    candidates: list[CandidateTask],
    *,
    id_factory: Callable[[], str] | None = None,
) -> list[NormalizedTask]:
    """Fill defaults and assign batch-unique ids. Pure apart from id generation."""
    if not candidates:
        raise EmptyBatchError("No tasks found")

    next_id = _batch_id_generator(id_factory or random_task_id)

    out: list[NormalizedTask] = []
    for c in candidates:
        out.append(
            NormalizedTask(
                id=next_id(),
                title=c.title.strip() or UNTITLED_TASK,
                notes=(c.notes or "").strip(),
                priority=Priority.coerce(c.priority),
                due_date=c.due_date,
                due_time=c.due_time,
            )
        )
    return out
