# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpilot.core.state import AppState
from taskpilot.tasks.memory_store import InMemoryTaskStore
from taskpilot.tasks.task_models import Importance, TaskFields
from taskpilot.tasks.task_store import SqliteTaskStore

from .fakes import FakePrioritizer


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the action layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="taskpilot-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        prioritize_max_workers=4,
    )


@pytest.fixture(params=["sqlite", "memory"])
def store(request, settings: SimpleNamespace):
    """Both TaskRepo realizations; every store test runs against each."""
    if request.param == "sqlite":
        s = SqliteTaskStore(settings.tasks_db_path)
    else:
        s = InMemoryTaskStore()
    yield s
    s.close()


@pytest.fixture()
def prioritizer() -> FakePrioritizer:
    return FakePrioritizer()


@pytest.fixture()
def state(settings: SimpleNamespace, store, prioritizer: FakePrioritizer) -> AppState:
    return AppState(settings=settings, task_store=store, prioritizer=prioritizer)


@pytest.fixture()
def make_fields():
    """Factory for valid TaskFields; override any field by keyword."""

    def _make(**overrides) -> TaskFields:
        base = {
            "title": "Write report",
            "description": "Draft the quarterly report for the team.",
            "deadline": datetime.now(UTC) + timedelta(days=3),
            "importance": Importance.MEDIUM,
            "predicted_effort": "2 hours",
        }
        base.update(overrides)
        return TaskFields(**base)

    return _make
