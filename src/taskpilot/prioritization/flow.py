# src/taskpilot/prioritization/flow.py

"""
Prioritization adapter.

Sends task summaries to an LLM and turns its JSON answer into
PrioritizedTask annotations. How the score is computed is the model's business;
this module only builds the prompt and validates what comes back.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from ..core.ports import LLMClient
from ..errors import PrioritizationError
from ..tasks.task_models import PrioritizedTask, TaskSummary

logger = logging.getLogger(__name__)

PRIORITIZATION_SYSTEM_PROMPT = """
You are a task prioritization module.

You do NOT chat with the user.

Input: a JSON object with
- "now": current time (ISO 8601, UTC)
- "tasks": list of {title, description, deadline, importance, predictedEffort}

For every task, assign:
- priorityScore: integer 0-100, higher means do it sooner
- reasoning: one or two sentences explaining the score

Consider deadline proximity, importance (low/medium/high) and predicted effort.
Keep each title EXACTLY as given; titles are used to match results.

Output format:
Return STRICT JSON only. No extra text. No Markdown.
{ "tasks": [ { "title": "...", "priorityScore": 0, "reasoning": "..." } ] }
""".strip()

SCORE_MIN, SCORE_MAX = 0, 100


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("[") or (raw.startswith("{") and raw.endswith("}")):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def build_user_message(tasks: Sequence[TaskSummary], now: datetime | None = None) -> str:
    now = (now or datetime.now(UTC)).astimezone(UTC).replace(microsecond=0)
    payload = {
        "now": now.isoformat(),
        "tasks": [t.to_payload() for t in tasks],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _coerce_item(item: Any, known_titles: set[str]) -> PrioritizedTask | None:
    if not isinstance(item, dict):
        return None

    title = item.get("title")
    if not isinstance(title, str) or title not in known_titles:
        logger.debug("Prioritizer returned unknown title %r; dropped.", title)
        return None

    raw_score = item.get("priorityScore", item.get("priority_score"))
    if isinstance(raw_score, bool):
        return None
    try:
        value = float(raw_score)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value):
        logger.debug("Prioritizer returned bad score %r for %r; dropped.", raw_score, title)
        return None
    score = max(SCORE_MIN, min(SCORE_MAX, int(round(value))))

    reasoning = str(item.get("reasoning") or "").strip()
    if not reasoning:
        logger.debug("Prioritizer returned no reasoning for %r; dropped.", title)
        return None

    return PrioritizedTask(title=title, priority_score=score, reasoning=reasoning)


def parse_prioritization(raw: str, tasks: Sequence[TaskSummary]) -> list[PrioritizedTask]:
    """Parse the model answer. Raises PrioritizationError if it is not the expected JSON."""
    try:
        plan = json.loads(_extract_json_object(raw))
    except json.JSONDecodeError as e:
        raise PrioritizationError(f"Prioritizer returned invalid JSON: {raw[:200]!r}") from e

    items = plan.get("tasks") if isinstance(plan, dict) else plan
    if not isinstance(items, list):
        raise PrioritizationError("Prioritizer answer has no task list.")

    known = {t.title for t in tasks}
    out: list[PrioritizedTask] = []
    seen: set[str] = set()
    for item in items:
        p = _coerce_item(item, known)
        if p is None or p.title in seen:
            continue
        seen.add(p.title)
        out.append(p)
    return out


class LLMPrioritizer:
    """Prioritizer port backed by any LLMClient."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    def prioritize(self, tasks: Sequence[TaskSummary]) -> list[PrioritizedTask]:
        if not tasks:
            return []

        user_message = build_user_message(tasks)
        raw = ""
        try:
            for piece in self._llm.stream_chat(
                [{"role": "user", "content": user_message}],
                PRIORITIZATION_SYSTEM_PROMPT,
            ):
                raw += piece
        except RuntimeError as e:
            raise PrioritizationError(str(e)) from e

        raw = raw.strip()
        if not raw:
            raise PrioritizationError("Prioritizer returned an empty answer.")

        results = parse_prioritization(raw, tasks)
        logger.info("Prioritized %d/%d tasks", len(results), len(tasks))
        return results
