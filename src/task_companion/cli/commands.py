# src/task_companion/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.errors import CompletionError, TaskParseError
from ..core.state import AppState
from ..llm.client import friendly_llm_error_message
from ..llm.offline import OfflineLLMClient
from ..parsing.inputs import AudioInput, TextInput
from ..tasks.task_api import (
    discard_pending_batch,
    generate_and_store_subtasks,
    parse_and_preview,
    save_pending_batch,
)
from ..tasks.task_models import NormalizedTask, Task, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /parse, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----

def _due_str(due_date: str | None, due_time: str | None) -> str:
    if not due_date and not due_time:
        return "no due date"
    return " ".join(p for p in (due_date, due_time) if p)


def format_parsed_task(i: int, t: NormalizedTask) -> str:
    line = f"{i}. {t.title} [{t.priority.value}] ({_due_str(t.due_date, t.due_time)})"
    if t.notes:
        line += f"\n     {t.notes}"
    return line


def format_task(t: Task) -> str:
    mark = "x" if t.status == TaskStatus.COMPLETED else " "
    return f"[{mark}] #{t.id} {t.title} [{t.priority.value}] ({_due_str(t.due_date, t.due_time)})"


def format_parse_error(err: TaskParseError) -> str:
    if isinstance(err, CompletionError) and err.__cause__ is not None:
        detail = friendly_llm_error_message(err.__cause__)
    else:
        detail = str(err)
    return f"Could not parse tasks [{err.kind}]: {detail}"


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        return None


def _preview(state: AppState, raw) -> str:
    try:
        result = parse_and_preview(state, raw)
    except TaskParseError as e:
        logger.info("Parse failed: %s", e.to_dict())
        return format_parse_error(e)

    lines = [f"Parsed {len(result.tasks)} task(s) from: {result.utterance!r}"]
    lines.extend(format_parsed_task(i, t) for i, t in enumerate(result.tasks, start=1))
    lines.append("Use /save to store them or /discard to drop them.")
    return "\n".join(lines)


# ---- handlers ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    mode = "OFFLINE (mock completions)" if isinstance(state.llm, OfflineLLMClient) else "ONLINE"
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    tz = getattr(state.settings, "timezone", None) or "system local"
    return (
        "Status:\n"
        f"  LLM mode: {mode}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Time zone: {tz}\n"
        f"  Pending parsed tasks: {len(state.pending_batch)}"
    )


def cmd_parse(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/parse <text> -> preview tasks extracted from free-form text"""
    text = " ".join(args).strip()
    if not text:
        return "Usage: /parse <what you need to do>"
    if emit:
        emit("Parsing...")
    return _preview(state, TextInput(value=text))


def cmd_voice(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/voice <path> -> transcribe an audio file and preview the tasks in it"""
    if not args:
        return "Usage: /voice <path to audio file>"
    path = Path(" ".join(args)).expanduser()
    try:
        data = path.read_bytes()
    except OSError as e:
        return f"Cannot read audio file {path}: {e.strerror or e}"
    if emit:
        emit(f"Transcribing {path.name}...")
    return _preview(state, AudioInput(data=data, filename=path.name))


def cmd_save(state: AppState, args: list[str]) -> str:
    if not state.pending_batch:
        return "Nothing to save. Use /parse first."
    ids = save_pending_batch(state)
    return f"Saved {len(ids)} task(s): " + ", ".join(f"#{i}" for i in ids)


def cmd_discard(state: AppState, args: list[str]) -> str:
    n = discard_pending_batch(state)
    return f"Discarded {n} parsed task(s)." if n else "Nothing to discard."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks           -> all tasks
    /tasks <status>  -> only pending | in_progress | completed | archived
    """
    status: TaskStatus | None = None
    if args:
        try:
            status = TaskStatus(args[0].lower())
        except ValueError:
            return "Usage: /tasks [pending|in_progress|completed|archived]"

    tasks = state.task_store.list_tasks(status=status)
    if not tasks:
        return "No tasks."
    return "\n".join(format_task(t) for t in tasks)


def cmd_show(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /show <task id>"
    task = state.task_store.get_task(task_id)
    if task is None:
        return f"Task #{task_id} not found."

    lines = [format_task(task), f"  status: {task.status.value}"]
    if task.notes:
        lines.append(f"  notes: {task.notes}")
    subtasks = state.task_store.list_subtasks(task_id)
    if subtasks:
        lines.append("  subtasks:")
        lines.extend(
            f"    - {st.title} [{st.status.value}] ({_due_str(st.due_date, st.due_time)})"
            for st in subtasks
        )
    notes = state.task_store.list_notes(task_id)
    if notes:
        lines.append("  journal:")
        lines.extend(f"    - {n.content}" for n in notes)
    return "\n".join(lines)


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /done <task id>"
    if not state.task_store.update_task_fields(task_id, status=TaskStatus.COMPLETED):
        return f"Task #{task_id} not found."
    return f"Task #{task_id} marked as completed."


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /delete <task id>"
    if not state.task_store.delete_task(task_id):
        return f"Task #{task_id} not found."
    return f"Task #{task_id} deleted."


def cmd_subtasks(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /subtasks <task id>"
    if emit:
        emit("Generating subtasks...")
    try:
        suggestions = generate_and_store_subtasks(state, task_id)
    except LookupError:
        return f"Task #{task_id} not found."
    except TaskParseError as e:
        logger.info("Subtask generation failed: %s", e.to_dict())
        return format_parse_error(e)

    lines = [f"Generated {len(suggestions)} subtask(s) for #{task_id}:"]
    lines.extend(
        f"  {i}. {s.title} ({_due_str(s.due_date, s.due_time)})"
        for i, s in enumerate(suggestions, start=1)
    )
    return "\n".join(lines)


def cmd_note(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    content = " ".join(args[1:]).strip()
    if task_id is None or not content:
        return "Usage: /note <task id> <text>"
    if state.task_store.get_task(task_id) is None:
        return f"Task #{task_id} not found."
    state.task_store.add_note(task_id, content)
    return f"Note added to #{task_id}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings (LLM mode/models/time zone).")
registry.register("parse", cmd_parse, help_text="Extract tasks from text: /parse <text>.", aliases=["p"])
registry.register("voice", cmd_voice, help_text="Extract tasks from an audio file: /voice <path>.")
registry.register("save", cmd_save, help_text="Store the last parsed tasks.")
registry.register("discard", cmd_discard, help_text="Drop the last parsed tasks.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [status].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task with subtasks and notes: /show <id>.")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("subtasks", cmd_subtasks, help_text="Generate subtasks with the LLM: /subtasks <id>.")
registry.register("note", cmd_note, help_text="Add a note to a task: /note <id> <text>.")
