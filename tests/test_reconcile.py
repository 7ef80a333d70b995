# tests/test_reconcile.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from taskpilot.tasks.reconcile import merge_prioritized
from taskpilot.tasks.task_models import Importance, PrioritizedTask, Task

BASE = datetime(2026, 10, 1, tzinfo=UTC)


def _task(title: str, score: int | None = None, reasoning: str | None = None) -> Task:
    return Task(
        id=f"id-{title}",
        title=title,
        description="Something to do soon.",
        deadline=BASE + timedelta(days=7),
        importance=Importance.MEDIUM,
        predicted_effort="1 hour",
        completed=False,
        created_at=BASE,
        priority_score=score,
        reasoning=reasoning,
    )


def test_unmatched_tasks_keep_prior_score_and_reasoning() -> None:
    tasks = [_task("A"), _task("B", 55, "kept"), _task("C")]
    merged = merge_prioritized(
        tasks,
        [
            PrioritizedTask(title="A", priority_score=90, reasoning="urgent"),
            PrioritizedTask(title="C", priority_score=10, reasoning="later"),
        ],
    )

    by_title = {t.title: t for t in merged}
    assert (by_title["A"].priority_score, by_title["A"].reasoning) == (90, "urgent")
    assert (by_title["B"].priority_score, by_title["B"].reasoning) == (55, "kept")
    assert (by_title["C"].priority_score, by_title["C"].reasoning) == (10, "later")
    assert [t.title for t in merged] == ["A", "B", "C"]


def test_missing_score_sorts_as_zero_and_sort_is_stable() -> None:
    tasks = [_task("none1"), _task("neg", -5, "below zero"), _task("zero", 0, "z"), _task("none2")]
    merged = merge_prioritized(tasks, [PrioritizedTask(title="top", priority_score=1, reasoning="x")])

    # None counts as 0: ties with "zero" keep input order; the negative score sinks.
    assert [t.title for t in merged] == ["none1", "zero", "none2", "neg"]


def test_inputs_are_not_mutated() -> None:
    tasks = [_task("A")]
    merge_prioritized(tasks, [PrioritizedTask(title="A", priority_score=3, reasoning="r")])
    assert tasks[0].priority_score is None
