# src/taskpilot/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
import uuid
from collections.abc import Iterator
from pathlib import Path

from ..db.schema import apply_schema
from ..errors import TaskStoreError
from .task_models import (
    Importance,
    Task,
    TaskFields,
    TaskFilter,
    from_epoch,
    to_epoch,
    utc_now,
)

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    id, title, description, deadline, importance, predicted_effort,
    completed, priority_score, reasoning, created_at
"""

_FILTER_WHERE = {
    TaskFilter.ALL: "",
    TaskFilter.ACTIVE: "WHERE completed = 0",
    TaskFilter.COMPLETED: "WHERE completed = 1",
}


class SqliteTaskStore:
    """
    SQLite task store.

    Connections are scoped: each method opens its own connection and closes it
    before returning. A ":memory:" database keeps one shared connection instead,
    because every new connection would see an empty database.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = str(db_path)
        self._shared: sqlite3.Connection | None = None
        self._shared_lock = threading.Lock()
        if self._db_path == ":memory:":
            self._shared = sqlite3.connect(":memory:", check_same_thread=False)
            self._shared.row_factory = sqlite3.Row
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            apply_schema(conn)
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if self._shared is not None:
            with self._shared_lock:
                yield self._shared
            return

        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        score = row["priority_score"]
        return Task(
            id=str(row["id"]),
            title=str(row["title"]),
            description=str(row["description"]),
            deadline=from_epoch(row["deadline"]),
            importance=Importance(row["importance"]),
            predicted_effort=str(row["predicted_effort"]),
            completed=bool(row["completed"]),
            priority_score=int(score) if score is not None else None,
            reasoning=row["reasoning"],
            created_at=from_epoch(row["created_at"]),
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def list_tasks(self, task_filter: TaskFilter = TaskFilter.ALL) -> list[Task]:
        """Tasks matching the filter: priority_score DESC (NULLs last), then created_at DESC."""
        where = _FILTER_WHERE[TaskFilter(task_filter)]
        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM tasks
            {where}
            ORDER BY priority_score IS NULL, priority_score DESC, created_at DESC
        """
        with self._connect() as conn:
            rows = conn.execute(sql).fetchall()
        return [self._row_to_task(r) for r in rows]

    def get_task(self, task_id: str) -> Task | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM tasks WHERE id = ?",
                (str(task_id),),
            ).fetchone()
        return self._row_to_task(row) if row else None

    def add_task(self, fields: TaskFields) -> Task:
        task = Task(
            id=str(uuid.uuid4()),
            title=fields.title,
            description=fields.description,
            deadline=fields.deadline,
            importance=Importance(fields.importance),
            predicted_effort=fields.predicted_effort,
            completed=False,
            created_at=utc_now(),
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, title, description, deadline, importance,
                    predicted_effort, completed, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, 0, ?)
                """,
                (
                    task.id,
                    task.title,
                    task.description,
                    to_epoch(task.deadline),
                    task.importance.value,
                    task.predicted_effort,
                    to_epoch(task.created_at),
                ),
            )
            conn.commit()
        logger.debug("Task added id=%s title=%r", task.id, task.title)
        return task

    def update_task(self, task_id: str, fields: TaskFields) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE tasks
                SET title = ?,
                    description = ?,
                    deadline = ?,
                    importance = ?,
                    predicted_effort = ?
                WHERE id = ?
                """,
                (
                    fields.title,
                    fields.description,
                    to_epoch(fields.deadline),
                    Importance(fields.importance).value,
                    fields.predicted_effort,
                    str(task_id),
                ),
            )
            conn.commit()
            return cur.rowcount > 0

    def delete_task(self, task_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (str(task_id),))
            conn.commit()
            return cur.rowcount > 0

    def set_completed(self, task_id: str, completed: bool) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE tasks SET completed = ? WHERE id = ?",
                (1 if completed else 0, str(task_id)),
            )
            conn.commit()
            return cur.rowcount > 0

    def set_priority_by_title(self, title: str, priority_score: int, reasoning: str) -> int:
        if reasoning is None:
            raise TaskStoreError("priority_score and reasoning must be set together")
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE tasks SET priority_score = ?, reasoning = ? WHERE title = ?",
                (int(priority_score), str(reasoning), title),
            )
            conn.commit()
            return int(cur.rowcount)
