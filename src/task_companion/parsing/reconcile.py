# src/task_companion/parsing/reconcile.py

"""
Date/time reconciliation.

Rules:
- a malformed time is dropped (time is optional),
- a malformed or past date becomes "tomorrow", with a default time when
  no valid time is left,
- a valid date on or after today is never moved.

Applying reconcile() to its own output changes nothing.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import TypeVar

from .schema import ScheduledItem
from .time_context import TimeContext

logger = logging.getLogger(__name__)

DEFAULT_DUE_TIME = "14:00"

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:T\d{2}:\d{2}.*)?$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

T = TypeVar("T", bound=ScheduledItem)


def parse_due_date(raw: str | None) -> date | None:
    """YYYY-MM-DD (optionally followed by an ISO time part) -> date, else None."""
    if raw is None:
        return None
    m = _DATE_RE.match(raw.strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def normalize_due_time(raw: str | None) -> str | None:
    """H:mm / HH:mm with hours 0-23 and minutes 0-59 -> "HH:mm", else None."""
    if raw is None:
        return None
    m = _TIME_RE.match(raw.strip())
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return f"{hours:02d}:{minutes:02d}"


def reconcile_one(item: T, ctx: TimeContext, *, default_time: str = DEFAULT_DUE_TIME) -> T:
    due_time = normalize_due_time(item.due_time)
    if item.due_time is not None and due_time is None:
        logger.debug("Dropping malformed due time %r for %r", item.due_time, item.title)

    due_date: str | None = None
    if item.due_date is not None:
        parsed = parse_due_date(item.due_date)
        if parsed is None or parsed < ctx.today:
            logger.info(
                "Rewriting due date %r -> %s for %r (malformed or in the past)",
                item.due_date,
                ctx.tomorrow.isoformat(),
                item.title,
            )
            due_date = ctx.tomorrow.isoformat()
            if due_time is None:
                due_time = default_time
        else:
            due_date = parsed.isoformat()

    if due_date == item.due_date and due_time == item.due_time:
        return item
    return item.model_copy(update={"due_date": due_date, "due_time": due_time})


def reconcile(
    candidates: list[T],
    ctx: TimeContext,
    *,
    default_time: str = DEFAULT_DUE_TIME,
) -> list[T]:
    """Repair due dates/times against `ctx`; pure, returns a new list."""
    fallback = normalize_due_time(default_time) or DEFAULT_DUE_TIME
    return [reconcile_one(c, ctx, default_time=fallback) for c in candidates]
