# src/taskpilot/tasks/memory_store.py

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterable
from dataclasses import replace

from .task_models import Importance, Task, TaskFields, TaskFilter, listing_sort_key, utc_now

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """
    Process-local TaskRepo: nothing survives a restart.

    Used for the client-only deployment mode (memory://) and in tests.
    Returned tasks are copies; callers cannot mutate stored state.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[str, Task] = {t.id: replace(t) for t in tasks}
        logger.info("InMemoryTaskStore ready total=%s", len(self._tasks))

    def close(self) -> None:
        return

    def count_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    def list_tasks(self, task_filter: TaskFilter = TaskFilter.ALL) -> list[Task]:
        flt = TaskFilter(task_filter)
        with self._lock:
            out = [replace(t) for t in self._tasks.values() if flt.matches(t)]
        out.sort(key=listing_sort_key)
        return out

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            t = self._tasks.get(task_id)
            return replace(t) if t is not None else None

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
        with self._lock:
            self._tasks[task.id] = task
        logger.debug("Task added id=%s title=%r", task.id, task.title)
        return replace(task)

    def update_task(self, task_id: str, fields: TaskFields) -> bool:
        with self._lock:
            t = self._tasks.get(task_id)
            if t is None:
                return False
            self._tasks[task_id] = replace(
                t,
                title=fields.title,
                description=fields.description,
                deadline=fields.deadline,
                importance=Importance(fields.importance),
                predicted_effort=fields.predicted_effort,
            )
            return True

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def set_completed(self, task_id: str, completed: bool) -> bool:
        with self._lock:
            t = self._tasks.get(task_id)
            if t is None:
                return False
            self._tasks[task_id] = replace(t, completed=bool(completed))
            return True

    def set_priority_by_title(self, title: str, priority_score: int, reasoning: str) -> int:
        n = 0
        with self._lock:
            for task_id, t in list(self._tasks.items()):
                if t.title == title:
                    self._tasks[task_id] = replace(
                        t, priority_score=int(priority_score), reasoning=str(reasoning)
                    )
                    n += 1
        return n
