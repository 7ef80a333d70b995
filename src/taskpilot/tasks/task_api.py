# src/taskpilot/tasks/task_api.py

"""
Action layer consumed by the UI.

Every action returns an ActionResult and never raises: persistence and adapter
failures are logged and turned into a fixed user-facing message. Successful
mutations invalidate the task view cache.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from ..core.state import AppState
from .task_models import ActionResult, PrioritizedTask, Task, TaskFields, TaskFilter, TaskSummary

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch tasks."
ADD_FAILED = "Failed to add task."
UPDATE_FAILED = "Failed to update task."
DELETE_FAILED = "Failed to delete task."
TOGGLE_FAILED = "Failed to update task completion."
PRIORITIZE_FAILED = "Failed to prioritize tasks with AI. Please try again."


def get_tasks(state: AppState, task_filter: TaskFilter | str = TaskFilter.ALL) -> ActionResult[list[Task]]:
    try:
        flt = TaskFilter(task_filter)
    except ValueError:
        logger.warning("Unknown task filter %r", task_filter)
        return ActionResult.fail(FETCH_FAILED)

    try:
        tasks = state.view_cache.get_or_load(flt, state.task_store.list_tasks)
    except Exception:
        logger.exception("Error fetching tasks filter=%s", flt)
        return ActionResult.fail(FETCH_FAILED)
    return ActionResult.ok(tasks)


def add_task(state: AppState, fields: TaskFields) -> ActionResult[Task]:
    try:
        task = state.task_store.add_task(fields)
    except Exception:
        logger.exception("Error adding task title=%r", fields.title)
        return ActionResult.fail(ADD_FAILED)

    state.view_cache.invalidate()
    logger.info("Task created id=%s", task.id)
    return ActionResult.ok(task)


def update_task(state: AppState, task_id: str, fields: TaskFields) -> ActionResult[None]:
    try:
        found = state.task_store.update_task(task_id, fields)
    except Exception:
        logger.exception("Error updating task id=%s", task_id)
        return ActionResult.fail(UPDATE_FAILED)

    if not found:
        logger.info("update_task: no task with id=%s", task_id)
    state.view_cache.invalidate()
    return ActionResult.ok()


def delete_task(state: AppState, task_id: str) -> ActionResult[None]:
    try:
        found = state.task_store.delete_task(task_id)
    except Exception:
        logger.exception("Error deleting task id=%s", task_id)
        return ActionResult.fail(DELETE_FAILED)

    if not found:
        logger.info("delete_task: no task with id=%s", task_id)
    state.view_cache.invalidate()
    return ActionResult.ok()


def toggle_task_complete(state: AppState, task_id: str, completed: bool) -> ActionResult[None]:
    try:
        found = state.task_store.set_completed(task_id, completed)
    except Exception:
        logger.exception("Error updating task completion id=%s", task_id)
        return ActionResult.fail(TOGGLE_FAILED)

    if not found:
        logger.info("toggle_task_complete: no task with id=%s", task_id)
    state.view_cache.invalidate()
    return ActionResult.ok()


def _persist_one(state: AppState, p: PrioritizedTask) -> int:
    n = state.task_store.set_priority_by_title(p.title, p.priority_score, p.reasoning)
    if n > 1:
        # Titles are not unique; every row with this title got the same annotation.
        logger.warning("Prioritization title %r matched %d tasks; all were updated.", p.title, n)
    elif n == 0:
        logger.debug("Prioritization title %r matched no stored task.", p.title)
    return n


def get_prioritized_tasks(
    state: AppState, tasks: Sequence[Task | TaskSummary]
) -> ActionResult[list[PrioritizedTask]]:
    """
    Ask the prioritizer to score `tasks`, then store each returned score and
    reasoning on the stored tasks with the same title.

    Updates run concurrently and are awaited together. One failed update does
    not undo the others, but the action then reports failure.
    """
    summaries = [t.summary() if isinstance(t, Task) else t for t in tasks]

    try:
        results = state.prioritizer.prioritize(summaries)
    except Exception:
        logger.exception("Error prioritizing %d tasks", len(summaries))
        return ActionResult.fail(PRIORITIZE_FAILED)

    if results:
        max_workers = max(1, int(getattr(state.settings, "prioritize_max_workers", 8)))
        failed = 0
        with ThreadPoolExecutor(max_workers=min(max_workers, len(results))) as pool:
            futures = [pool.submit(_persist_one, state, p) for p in results]
            for fut in futures:
                try:
                    fut.result()
                except Exception:
                    failed += 1
                    logger.exception("Error storing prioritization result")

        state.view_cache.invalidate()
        if failed:
            logger.error("Prioritization: %d of %d updates failed", failed, len(results))
            return ActionResult.fail(PRIORITIZE_FAILED)

    return ActionResult.ok(results)
