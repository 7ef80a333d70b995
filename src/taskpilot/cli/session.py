# src/taskpilot/cli/session.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import Task, TaskFilter

Ask = Callable[[str], str]


@dataclass
class ConsoleSession:
    """
    Client-side view state for the console: the active filter tab and the
    last rendered list, which numbered references (/done 2) point into.
    """

    state: AppState
    ask: Ask = input
    task_filter: TaskFilter = TaskFilter.ALL
    tasks: list[Task] = field(default_factory=list)

    def refresh(self, task_filter: TaskFilter | None = None) -> str | None:
        """Re-fetch the current view. Returns an error message on failure."""
        if task_filter is not None:
            self.task_filter = task_filter
        result = task_api.get_tasks(self.state, self.task_filter)
        if not result.success:
            return result.error
        self.tasks = list(result.data or [])
        return None

    def resolve(self, ref: str) -> Task | None:
        """A 1-based position in the last list, or a task id prefix."""
        ref = ref.strip()
        if not ref:
            return None
        if ref.isdigit():
            idx = int(ref) - 1
            if 0 <= idx < len(self.tasks):
                return self.tasks[idx]
            return None

        matches = [t for t in self.tasks if t.id.startswith(ref)]
        if not matches:
            result = task_api.get_tasks(self.state, TaskFilter.ALL)
            matches = [t for t in (result.data or []) if t.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None
