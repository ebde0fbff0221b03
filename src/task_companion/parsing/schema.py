# src/task_companion/parsing/schema.py

"""
Structural validation of completion output.

The completion service is untrusted: its reply must be one JSON array whose
elements match these models. Wrong shapes are rejected, never coerced.
Date/time strings stay untrusted here; reconcile.py decides what to keep.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from ..core.errors import MalformedResponseError, MissingRequiredFieldError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class ScheduledItem(BaseModel):
    """Anything carrying an optional due date/time pair."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    title: StrictStr = ""
    due_date: StrictStr | None = Field(default=None, alias="dueDate")
    due_time: StrictStr | None = Field(default=None, alias="dueTime")

    @field_validator("due_date", "due_time", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CandidateTask(ScheduledItem):
    notes: StrictStr | None = None
    priority: str | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def _loose_priority(cls, v: Any) -> str | None:
        # finalize() maps anything outside the enum to "medium".
        if isinstance(v, str):
            return v.strip() or None
        return None


class SubtaskCandidate(ScheduledItem):
    pass


M = TypeVar("M", bound=ScheduledItem)


def _load_reply_json(raw: str) -> Any:
    """
    Decode the fence-stripped reply as-is.

    Only when that fails is the outermost [...] span tried, and never when it
    sits inside an object (`{"tasks": [...]}` stays an object and is rejected).
    """
    body = _FENCE_RE.sub("", raw.strip()).strip()
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        first = body.find("[")
        last = body.rfind("]")
        if first == -1 or last <= first or "{" in body[:first]:
            raise
        return json.loads(body[first : last + 1])


def parse_json_array(raw: str | None) -> list[Any]:
    """Parse a completion into a non-empty JSON array or raise MalformedResponseError."""
    text = (raw or "").strip()
    if not text:
        raise MalformedResponseError("Empty response from completion service")

    try:
        data = _load_reply_json(text)
    except json.JSONDecodeError as e:
        logger.info("Completion is not valid JSON. Raw=%r", text[:2000])
        raise MalformedResponseError(f"Response is not valid JSON: {e.msg}") from e

    if not isinstance(data, list):
        raise MalformedResponseError(f"Expected a JSON array, got {type(data).__name__}")
    if not data:
        raise MalformedResponseError("No tasks found")
    return data


def validate_items(items: list[Any], model: type[M]) -> list[M]:
    """
    Validate every element against `model`; the first bad one fails the batch.

    A missing, blank or non-string title -> MissingRequiredFieldError.
    Any other structural problem -> MalformedResponseError.
    """
    out: list[M] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedResponseError(
                f"Expected an object, got {type(item).__name__}", index=i
            )
        try:
            parsed = model.model_validate(item)
        except ValidationError as e:
            errors = e.errors()
            if any(err.get("loc", ())[:1] == ("title",) for err in errors):
                raise MissingRequiredFieldError("Task title must be a string", index=i) from e
            first = errors[0] if errors else {}
            loc = ".".join(str(p) for p in first.get("loc", ())) or "item"
            raise MalformedResponseError(
                f"Invalid field {loc}: {first.get('msg', 'invalid value')}", index=i
            ) from e

        if not parsed.title.strip():
            raise MissingRequiredFieldError("Task is missing a title", index=i)
        out.append(parsed)
    return out
