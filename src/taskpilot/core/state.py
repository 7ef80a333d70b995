# src/taskpilot/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.view_cache import TaskViewCache
from .ports import Prioritizer, TaskRepo


@dataclass
class AppState:
    # Settings object (config.Settings in the app, a SimpleNamespace in tests).
    settings: Any

    task_store: TaskRepo
    prioritizer: Prioritizer

    view_cache: TaskViewCache = field(default_factory=TaskViewCache)
