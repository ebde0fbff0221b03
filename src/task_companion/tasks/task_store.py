# src/task_companion/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .task_models import (
    NormalizedTask,
    Priority,
    SubTask,
    SubTaskStatus,
    Task,
    TaskNote,
    TaskStatus,
)

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    notes TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'pending',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    due_date TEXT,
                    due_time TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS subtasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'not_started',
                    position INTEGER NOT NULL DEFAULT 0,
                    due_date TEXT,
                    due_time TEXT,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("notes", "TEXT NOT NULL DEFAULT ''")
            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("due_date", "TEXT")
            add_col("due_time", "TEXT")
            add_col("tags", "TEXT NOT NULL DEFAULT '[]'")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due_date, due_time)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_subtasks_task ON subtasks(task_id, position)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_notes_task ON task_notes(task_id)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _tags_to_str(tags: list[str] | None) -> str:
        clean = [str(t).strip() for t in (tags or []) if str(t).strip()]
        return json.dumps(clean, ensure_ascii=False)

    @staticmethod
    def _str_to_tags(s: str | None) -> list[str]:
        if not s:
            return []
        try:
            val = json.loads(s)
        except json.JSONDecodeError:
            return []
        return [str(t) for t in val] if isinstance(val, list) else []

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            notes=str(row["notes"] or ""),
            status=TaskStatus.from_db(row["status"]),
            priority=Priority.coerce(row["priority"]),
            due_date=row["due_date"],
            due_time=row["due_time"],
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
            tags=self._str_to_tags(row["tags"]),
        )

    @staticmethod
    def _row_to_subtask(row: sqlite3.Row) -> SubTask:
        return SubTask(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            title=str(row["title"] or ""),
            status=SubTaskStatus.from_db(row["status"]),
            position=int(row["position"] or 0),
            due_date=row["due_date"],
            due_time=row["due_time"],
            created_at=float(row["created_at"] or 0.0),
        )

    @staticmethod
    def _row_to_note(row: sqlite3.Row) -> TaskNote:
        return TaskNote(
            id=int(row["id"]),
            task_id=int(row["task_id"]),
            content=str(row["content"] or ""),
            created_at=float(row["created_at"] or 0.0),
        )

    @staticmethod
    def _insert_task(
        cur: sqlite3.Cursor,
        *,
        title: str,
        notes: str,
        priority: Any,
        due_date: str | None,
        due_time: str | None,
        status: TaskStatus,
        tags: list[str] | None,
        now: float,
    ) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")
        cur.execute(
            """
            INSERT INTO tasks(
                title, notes, status, priority, due_date, due_time, tags, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                title.strip(),
                (notes or "").strip(),
                status.value,
                Priority.coerce(priority).value,
                due_date,
                due_time,
                TaskStore._tags_to_str(tags),
                now,
                now,
            ),
        )
        rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite did not return lastrowid for tasks insert")
        return int(rowid)

    # ---- tasks ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        notes: str = "",
        priority: Any = Priority.MEDIUM,
        due_date: str | None = None,
        due_time: str | None = None,
        status: TaskStatus | None = None,
        tags: list[str] | None = None,
    ) -> int:
        conn = self._get_conn()
        try:
            task_id = self._insert_task(
                conn.cursor(),
                title=title,
                notes=notes,
                priority=priority,
                due_date=due_date,
                due_time=due_time,
                status=status or TaskStatus.PENDING,
                tags=tags,
                now=time.time(),
            )
            conn.commit()
            logger.debug("Task added id=%s title=%r due=%s %s", task_id, title, due_date, due_time)
            return task_id
        finally:
            conn.close()

    def add_parsed_task(self, task: NormalizedTask) -> int:
        return self.add_task(
            title=task.title,
            notes=task.notes,
            priority=task.priority,
            due_date=task.due_date,
            due_time=task.due_time,
        )

    def add_parsed_tasks(self, tasks: Iterable[NormalizedTask]) -> list[int]:
        """
        Bulk create from a parsed batch.

        One connection, one commit; a bad record rolls back the whole batch.
        """
        batch = list(tasks)
        if not batch:
            return []

        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            ids = [
                self._insert_task(
                    cur,
                    title=t.title,
                    notes=t.notes,
                    priority=t.priority,
                    due_date=t.due_date,
                    due_time=t.due_time,
                    status=TaskStatus.PENDING,
                    tags=None,
                    now=now,
                )
                for t in batch
            ]
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info("Bulk-created %d task(s): %s", len(ids), ids)
        return ids

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self, *, status: TaskStatus | None = None, limit: int = 50) -> list[Task]:
        """
        Tasks ordered by due date/time (undated last), then by creation time.
        """
        where = ""
        params: list[Any] = []
        if status is not None:
            where = "WHERE status = ?"
            params.append(TaskStatus(status).value)
        params.append(int(limit))

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT *
                FROM tasks
                {where}
                ORDER BY due_date IS NULL, due_date ASC, due_time IS NULL, due_time ASC, created_at ASC
                    LIMIT ?
                """,
                params,
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        notes: str | None = None,
        priority: Any | None = None,
        status: TaskStatus | None = None,
        due_date: str | None = None,
        due_time: str | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """Partial update. Returns False if the task does not exist."""
        fields: list[str] = []
        params: list[Any] = []

        if title is not None:
            if not title.strip():
                raise ValueError("title must not be empty")
            fields.append("title = ?")
            params.append(title.strip())

        if notes is not None:
            fields.append("notes = ?")
            params.append(notes.strip())

        if priority is not None:
            fields.append("priority = ?")
            params.append(Priority.coerce(priority).value)

        if status is not None:
            fields.append("status = ?")
            params.append(TaskStatus(status).value)

        if due_date is not None:
            fields.append("due_date = ?")
            params.append(due_date)

        if due_time is not None:
            fields.append("due_time = ?")
            params.append(due_time)

        if tags is not None:
            fields.append("tags = ?")
            params.append(self._tags_to_str(tags))

        if not fields:
            return self.get_task(task_id) is not None

        fields.append("updated_at = ?")
        params.append(time.time())
        params.append(int(task_id))

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete_task(self, task_id: int) -> bool:
        """Delete a task with its subtasks and notes."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM subtasks WHERE task_id = ?", (int(task_id),))
            cur.execute("DELETE FROM task_notes WHERE task_id = ?", (int(task_id),))
            cur.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            deleted = cur.rowcount == 1
            conn.commit()
        finally:
            conn.close()

        if deleted:
            logger.debug("Task deleted id=%s", task_id)
        return deleted

    # ---- subtasks ----

    def add_subtask(
        self,
        task_id: int,
        title: str,
        *,
        due_date: str | None = None,
        due_time: str | None = None,
    ) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 FROM subtasks WHERE task_id = ?",
                (int(task_id),),
            )
            (position,) = cur.fetchone()
            cur.execute(
                """
                INSERT INTO subtasks(task_id, title, status, position, due_date, due_time, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(task_id),
                    title.strip(),
                    SubTaskStatus.NOT_STARTED.value,
                    int(position),
                    due_date,
                    due_time,
                    time.time(),
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for subtasks insert")
            return int(rowid)
        finally:
            conn.close()

    def replace_subtasks(self, task_id: int, subtasks: list[Any]) -> list[int]:
        """
        Replace all subtasks of a task.

        Items need a `title` and may carry `due_date`/`due_time`
        (e.g. SubtaskSuggestion).
        """
        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM subtasks WHERE task_id = ?", (int(task_id),))
            ids: list[int] = []
            for position, st in enumerate(subtasks):
                title = str(getattr(st, "title", "") or "").strip()
                if not title:
                    raise ValueError(f"subtask #{position} has no title")
                cur.execute(
                    """
                    INSERT INTO subtasks(task_id, title, status, position, due_date, due_time, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        int(task_id),
                        title,
                        SubTaskStatus.NOT_STARTED.value,
                        position,
                        getattr(st, "due_date", None),
                        getattr(st, "due_time", None),
                        now,
                    ),
                )
                ids.append(int(cur.lastrowid or 0))
            cur.execute("UPDATE tasks SET updated_at = ? WHERE id = ?", (now, int(task_id)))
            conn.commit()
            return ids
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def list_subtasks(self, task_id: int) -> list[SubTask]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM subtasks WHERE task_id = ? ORDER BY position ASC, id ASC",
                (int(task_id),),
            )
            return [self._row_to_subtask(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_subtask_status(self, subtask_id: int, status: SubTaskStatus) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE subtasks SET status = ? WHERE id = ?",
                (SubTaskStatus(status).value, int(subtask_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete_subtask(self, subtask_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM subtasks WHERE id = ?", (int(subtask_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    # ---- notes ----

    def add_note(self, task_id: int, content: str) -> int:
        if not content or not content.strip():
            raise ValueError("content is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO task_notes(task_id, content, created_at) VALUES (?, ?, ?)",
                (int(task_id), content.strip(), time.time()),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for task_notes insert")
            return int(rowid)
        finally:
            conn.close()

    def list_notes(self, task_id: int) -> list[TaskNote]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM task_notes WHERE task_id = ? ORDER BY created_at ASC, id ASC",
                (int(task_id),),
            )
            return [self._row_to_note(r) for r in cur.fetchall()]
        finally:
            conn.close()
