# src/task_companion/parsing/pipeline.py

"""
Natural-language task parsing.

raw input -> utterance -> candidate tasks (LLM) -> reconciled dates -> normalized tasks

Every stage raises a TaskParseError subclass on failure; nothing here retries
or returns a partial batch. Persisting the result is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from ..core.ports import LLMClient, SpeechToText
from ..tasks.task_models import NormalizedTask
from .extraction import extract_tasks
from .finalize import finalize
from .inputs import RawInput, normalize_input
from .reconcile import DEFAULT_DUE_TIME, reconcile
from .time_context import TimeContext, current_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParseResult:
    tasks: list[NormalizedTask]
    utterance: str
    context: TimeContext

    def to_dict(self) -> dict:
        return {
            "success": True,
            "tasks": [t.to_dict() for t in self.tasks],
            "rawInput": self.utterance,
        }


def parse_tasks(
    raw: RawInput | None,
    *,
    llm: LLMClient,
    stt: SpeechToText,
    tz_name: str | None = None,
    clock: Callable[[], datetime] | None = None,
    default_due_time: str = DEFAULT_DUE_TIME,
    id_factory: Callable[[], str] | None = None,
) -> ParseResult:
    ctx = current_context(tz_name=tz_name, clock=clock)

    utterance = normalize_input(raw, stt)
    logger.info("Parsing tasks from input (%d chars, tz=%s)", len(utterance), ctx.tz_label)

    candidates = extract_tasks(llm, utterance, ctx)
    candidates = reconcile(candidates, ctx, default_time=default_due_time)
    tasks = finalize(candidates, id_factory=id_factory)

    logger.info("Parsed %d task(s)", len(tasks))
    return ParseResult(tasks=tasks, utterance=utterance, context=ctx)


def parse_tasks_from_input(
    raw: RawInput | None,
    *,
    llm: LLMClient,
    stt: SpeechToText,
    tz_name: str | None = None,
    clock: Callable[[], datetime] | None = None,
    default_due_time: str = DEFAULT_DUE_TIME,
) -> list[NormalizedTask]:
    """Turn text or audio into ready-to-persist tasks, or raise TaskParseError."""
    return parse_tasks(
        raw,
        llm=llm,
        stt=stt,
        tz_name=tz_name,
        clock=clock,
        default_due_time=default_due_time,
    ).tasks
