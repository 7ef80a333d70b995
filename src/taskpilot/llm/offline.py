# src/taskpilot/llm/offline.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)

_IMPORTANCE_WEIGHT = {"high": 60, "medium": 40, "low": 20}


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last > first:
        return raw[first : last + 1]
    return raw


def _score_task(item: dict[str, Any], now: datetime) -> dict[str, Any]:
    importance = str(item.get("importance", "medium")).lower()
    weight = _IMPORTANCE_WEIGHT.get(importance, 40)

    try:
        deadline = datetime.fromisoformat(str(item.get("deadline")))
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=UTC)
        days_left = (deadline - now).total_seconds() / 86400.0
    except ValueError:
        days_left = None

    if days_left is None:
        urgency = 0
        when = "no usable deadline"
    elif days_left < 0:
        urgency = 40
        when = "overdue"
    else:
        urgency = max(0, 40 - int(days_left * 3))
        whole = int(days_left)
        when = "due today" if whole == 0 else f"due in {whole} day{'s' if whole != 1 else ''}"

    score = max(0, min(100, weight + urgency))
    return {
        "title": item.get("title", ""),
        "priorityScore": score,
        "reasoning": f"{importance.capitalize()} importance, {when}.",
    }


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior:
    - Prioritization prompts -> scores each task by importance and deadline proximity
    - Anything else -> a short notice that no LLM is configured
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()

        if "task prioritization" not in sp:
            yield "Offline mode: no external LLM is configured. Set TASKPILOT_OPENROUTER_API_KEY."
            return

        user_text = ""
        for m in reversed(messages):
            if m.get("role") == "user":
                user_text = m.get("content", "")
                break

        try:
            payload = json.loads(_extract_json_object(user_text))
        except json.JSONDecodeError:
            logger.debug("Offline prioritizer got non-JSON input; returning no tasks.")
            yield '{"tasks": []}'
            return

        now_raw = payload.get("now")
        try:
            now = datetime.fromisoformat(now_raw) if now_raw else datetime.now(UTC)
        except ValueError:
            now = datetime.now(UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)

        items = payload.get("tasks") or []
        scored = [_score_task(it, now) for it in items if isinstance(it, dict)]
        yield json.dumps({"tasks": scored}, ensure_ascii=False)
