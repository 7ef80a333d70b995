# src/taskpilot/tasks/view_cache.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace

from .task_models import Task, TaskFilter

logger = logging.getLogger(__name__)


class TaskViewCache:
    """
    Cache-aside for task listings, keyed by filter.

    Read: cache (miss) -> loader -> cache. Write: the action layer calls
    invalidate() after every successful mutation, which drops every filter.
    Stored and returned lists are copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[TaskFilter, list[Task]] = {}
        self.hits = 0
        self.misses = 0
        self._generation = 0

    def get_or_load(self, task_filter: TaskFilter, loader: Callable[[TaskFilter], list[Task]]) -> list[Task]:
        with self._lock:
            cached = self._entries.get(task_filter)
            if cached is not None:
                self.hits += 1
                return [replace(t) for t in cached]
            self.misses += 1
            generation = self._generation

        tasks = loader(task_filter)

        with self._lock:
            # A concurrent invalidate() bumped the generation; do not store stale rows.
            if self._generation == generation:
                self._entries[task_filter] = [replace(t) for t in tasks]
        return tasks

    def invalidate(self) -> None:
        with self._lock:
            self._entries = {}
            self._generation += 1
        logger.debug("Task view cache invalidated")

    def __contains__(self, task_filter: object) -> bool:
        with self._lock:
            return task_filter in self._entries
