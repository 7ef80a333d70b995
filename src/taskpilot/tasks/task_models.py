# src/taskpilot/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Importance(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskFilter(StrEnum):
    """View selector over the task set."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def matches(self, task: Task) -> bool:
        if self is TaskFilter.ACTIVE:
            return not task.completed
        if self is TaskFilter.COMPLETED:
            return task.completed
        return True


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    deadline: datetime
    importance: Importance
    predicted_effort: str
    completed: bool
    created_at: datetime

    # Set together by a prioritization round, both None until then.
    priority_score: int | None = None
    reasoning: str | None = None

    def summary(self) -> TaskSummary:
        return TaskSummary(
            title=self.title,
            description=self.description,
            deadline=self.deadline,
            importance=self.importance,
            predicted_effort=self.predicted_effort,
        )


@dataclass(frozen=True, slots=True)
class TaskFields:
    """User-editable fields, shared by add and update."""

    title: str
    description: str
    deadline: datetime
    importance: Importance
    predicted_effort: str


@dataclass(frozen=True, slots=True)
class TaskSummary:
    """What the prioritization adapter sees of a task."""

    title: str
    description: str
    deadline: datetime
    importance: Importance
    predicted_effort: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "deadline": self.deadline.astimezone(UTC).isoformat(),
            "importance": self.importance.value,
            "predictedEffort": self.predicted_effort,
        }


@dataclass(frozen=True, slots=True)
class PrioritizedTask:
    title: str
    priority_score: int
    reasoning: str


@dataclass(frozen=True, slots=True)
class ActionResult(Generic[T]):
    """Uniform result of every action: success with data, or failure with a message."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> ActionResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ActionResult[T]:
        return cls(success=False, error=error)


def listing_sort_key(task: Task) -> tuple[int, int, float]:
    """
    Listing order: priority_score descending with None last, then created_at descending.
    Use with sorted(..., key=listing_sort_key).
    """
    has_score = 0 if task.priority_score is not None else 1
    score = -(task.priority_score or 0)
    return (has_score, score, -task.created_at.timestamp())


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_epoch(dt: datetime) -> float:
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.timestamp()


def from_epoch(ts: float) -> datetime:
    return datetime.fromtimestamp(float(ts), tz=UTC)
