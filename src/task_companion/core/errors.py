# src/task_companion/core/errors.py

"""
Typed errors raised by the task-parsing pipeline.

Every stage fails fast with one of these; nothing returns a partial batch.
`kind` is a stable identifier callers can log or send over the wire.
"""

from __future__ import annotations

from typing import Any


class TaskParseError(Exception):
    kind = "ParseError"

    def __init__(self, message: str, *, index: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.index = index

    def __str__(self) -> str:
        if self.index is None:
            return self.message
        return f"{self.message} (task #{self.index})"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.index is not None:
            out["index"] = self.index
        return out


class InvalidInputError(TaskParseError):
    kind = "InvalidInput"


class TranscriptionError(TaskParseError):
    kind = "TranscriptionFailed"


class CompletionError(TaskParseError):
    kind = "CompletionFailed"


class MalformedResponseError(TaskParseError):
    kind = "MalformedResponse"


class MissingRequiredFieldError(TaskParseError):
    kind = "MissingRequiredField"

    def __init__(self, message: str, *, index: int, field: str = "title") -> None:
        super().__init__(message, index=index)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["field"] = self.field
        return out


class EmptyBatchError(TaskParseError):
    kind = "EmptyBatch"


class IdAssignmentError(TaskParseError):
    """The id factory could not produce a batch-unique id."""

    kind = "IdAssignmentFailed"
