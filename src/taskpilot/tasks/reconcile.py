# src/taskpilot/tasks/reconcile.py

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .task_models import PrioritizedTask, Task


def merge_prioritized(tasks: Sequence[Task], results: Iterable[PrioritizedTask]) -> list[Task]:
    """
    Client-side merge after a prioritization round.

    Tasks whose title appears in `results` take the returned score and reasoning;
    the rest keep what they had. The whole list is then re-sorted by score,
    highest first, with a missing score counting as 0. The sort is stable.
    """
    by_title: dict[str, PrioritizedTask] = {}
    for r in results:
        by_title[r.title] = r

    merged: list[Task] = []
    for t in tasks:
        p = by_title.get(t.title)
        if p is None:
            merged.append(replace(t))
        else:
            merged.append(replace(t, priority_score=p.priority_score, reasoning=p.reasoning))

    merged.sort(key=lambda t: t.priority_score or 0, reverse=True)
    return merged
