# src/taskpilot/tasks/validation.py

"""
Form validation for task input.

Runs in the UI layer before anything reaches the action layer. Every rule
failure is reported per field, all fields at once.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from ..errors import TaskValidationError
from .task_models import Importance, TaskFields

TITLE_MIN, TITLE_MAX = 3, 50
DESCRIPTION_MIN, DESCRIPTION_MAX = 10, 200


def parse_deadline(raw: Any) -> datetime:
    """
    Accept a datetime, a date, or an ISO 8601 string ("2026-10-19", "2026-10-19T17:00").
    Naive values are local time. A bare date means the end of that day.
    """
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, date):
        dt = datetime.combine(raw, time(23, 59))
    else:
        s = str(raw or "").strip()
        if not s:
            raise ValueError("A deadline is required.")
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            if len(s) == 10:
                dt = datetime.combine(date.fromisoformat(s), time(23, 59))
            else:
                dt = datetime.fromisoformat(s)
        except ValueError as e:
            raise ValueError("Deadline must be a date like 2026-10-19 or 2026-10-19T17:00.") from e

    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def validate_task_input(raw: Mapping[str, Any]) -> TaskFields:
    """
    Validate raw form values into TaskFields.

    Keys: title, description, deadline, importance, predicted_effort
    (predictedEffort is accepted too). Raises TaskValidationError.
    """
    errors: dict[str, str] = {}

    title = str(raw.get("title") or "").strip()
    if len(title) < TITLE_MIN:
        errors["title"] = f"Title must be at least {TITLE_MIN} characters."
    elif len(title) > TITLE_MAX:
        errors["title"] = f"Title must be {TITLE_MAX} characters or less."

    description = str(raw.get("description") or "").strip()
    if len(description) < DESCRIPTION_MIN:
        errors["description"] = f"Description must be at least {DESCRIPTION_MIN} characters."
    elif len(description) > DESCRIPTION_MAX:
        errors["description"] = f"Description must be {DESCRIPTION_MAX} characters or less."

    deadline: datetime | None = None
    raw_deadline = raw.get("deadline")
    if raw_deadline is None or (isinstance(raw_deadline, str) and not raw_deadline.strip()):
        errors["deadline"] = "A deadline is required."
    else:
        try:
            deadline = parse_deadline(raw_deadline)
        except ValueError as e:
            errors["deadline"] = str(e)

    raw_importance = raw.get("importance")
    importance = Importance.MEDIUM
    if raw_importance is not None and str(raw_importance).strip():
        try:
            importance = Importance(str(raw_importance).strip().lower())
        except ValueError:
            errors["importance"] = "Importance must be one of: low, medium, high."

    effort_raw = raw.get("predicted_effort", raw.get("predictedEffort"))
    predicted_effort = str(effort_raw or "").strip()
    if not predicted_effort:
        errors["predicted_effort"] = "Predicted effort is required."

    if errors or deadline is None:
        raise TaskValidationError(errors)

    return TaskFields(
        title=title,
        description=description,
        deadline=deadline,
        importance=importance,
        predicted_effort=predicted_effort,
    )
