# src/taskpilot/errors.py

from __future__ import annotations


class TaskPilotError(Exception):
    """Base class for all application errors."""


class ConfigError(TaskPilotError):
    """Missing or invalid configuration (connection string, schema file, ...)."""


class TaskStoreError(TaskPilotError):
    """Persistence failure not already expressed as a sqlite3.Error."""


class PrioritizationError(TaskPilotError):
    """The prioritization adapter could not produce a usable answer."""


class TaskValidationError(TaskPilotError):
    """
    Input rejected before it reaches the action layer.

    `errors` maps a field name to a human readable message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(summary or "Invalid task input.")
