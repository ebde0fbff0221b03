# src/task_companion/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, raw: Any) -> Priority:
        """Anything outside low/medium/high (case-insensitive) becomes MEDIUM."""
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                return cls.MEDIUM
        return cls.MEDIUM


class SubTaskStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> SubTaskStatus:
        if not raw:
            return cls.NOT_STARTED
        try:
            return cls(raw)
        except ValueError:
            return cls.NOT_STARTED


@dataclass(frozen=True, slots=True)
class NormalizedTask:
    """A parsed task, ready to hand to the store. `id` is unique within its batch only."""

    id: str
    title: str
    notes: str
    priority: Priority
    due_date: str | None
    due_time: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "notes": self.notes,
            "priority": self.priority.value,
            "dueDate": self.due_date,
            "dueTime": self.due_time,
        }


@dataclass(slots=True)
class SubTask:
    id: int
    task_id: int
    title: str
    status: SubTaskStatus
    position: int
    due_date: str | None
    due_time: str | None
    created_at: float


@dataclass(slots=True)
class TaskNote:
    id: int
    task_id: int
    content: str
    created_at: float


@dataclass(slots=True)
class Task:
    id: int
    title: str
    notes: str
    status: TaskStatus
    priority: Priority
    due_date: str | None
    due_time: str | None
    created_at: float
    updated_at: float

    tags: list[str] = field(default_factory=list)
