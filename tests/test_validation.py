# tests/test_validation.py

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from taskpilot.errors import TaskValidationError
from taskpilot.tasks.task_models import Importance
from taskpilot.tasks.validation import parse_deadline, validate_task_input

VALID = {
    "title": "Write report",
    "description": "Draft the quarterly report for the team.",
    "deadline": "2026-11-01T17:00+00:00",
    "importance": "high",
    "predicted_effort": "2 hours",
}


def _errors(**overrides) -> dict[str, str]:
    with pytest.raises(TaskValidationError) as exc:
        validate_task_input({**VALID, **overrides})
    return exc.value.errors


def test_valid_input_produces_fields() -> None:
    fields = validate_task_input(VALID)
    assert fields.title == "Write report"
    assert fields.importance is Importance.HIGH
    assert fields.deadline == datetime(2026, 11, 1, 17, 0, tzinfo=UTC)


def test_camel_case_effort_and_default_importance() -> None:
    raw = {k: v for k, v in VALID.items() if k not in ("importance", "predicted_effort")}
    raw["predictedEffort"] = "3 days"
    fields = validate_task_input(raw)
    assert fields.predicted_effort == "3 days"
    assert fields.importance is Importance.MEDIUM


@pytest.mark.parametrize(
    ("field", "value", "message"),
    [
        ("title", "ab", "Title must be at least 3 characters."),
        ("title", "x" * 51, "Title must be 50 characters or less."),
        ("description", "too short", "Description must be at least 10 characters."),
        ("description", "y" * 201, "Description must be 200 characters or less."),
        ("deadline", "", "A deadline is required."),
        ("importance", "urgent", "Importance must be one of: low, medium, high."),
        ("predicted_effort", "   ", "Predicted effort is required."),
    ],
)
def test_each_rule_reports_its_field(field: str, value: str, message: str) -> None:
    assert _errors(**{field: value}) == {field: message}


def test_boundaries_are_inclusive() -> None:
    validate_task_input({**VALID, "title": "abc", "description": "0123456789"})
    validate_task_input({**VALID, "title": "t" * 50, "description": "d" * 200})


def test_all_failures_reported_together() -> None:
    errors = _errors(title="", description="", deadline="not a date")
    assert set(errors) == {"title", "description", "deadline"}


def test_parse_deadline_forms() -> None:
    assert parse_deadline("2026-11-01T09:30Z") == datetime(2026, 11, 1, 9, 30, tzinfo=UTC)

    local_date = parse_deadline("2026-11-01")
    assert local_date.tzinfo is not None
    assert (local_date.hour, local_date.minute) == (23, 59)

    naive = parse_deadline(datetime(2026, 11, 1, 8, 0))
    assert naive.tzinfo is not None

    with pytest.raises(ValueError):
        parse_deadline("next tuesday")


def test_missing_deadline_key_raises_instead_of_building_fields() -> None:
    raw = {k: v for k, v in VALID.items() if k != "deadline"}
    with pytest.raises(TaskValidationError) as exc:
        validate_task_input(raw)
    assert exc.value.errors == {"deadline": "A deadline is required."}
