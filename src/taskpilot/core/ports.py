# src/taskpilot/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The action layer depends on Protocols instead of concrete implementations.
This keeps storage and LLM providers swappable: the SQLite store and the
in-memory store are two realizations of TaskRepo.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

from ..tasks.task_models import PrioritizedTask, Task, TaskFields, TaskFilter, TaskSummary

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class Prioritizer(Protocol):
    """Turns task summaries into (title, score, reasoning) annotations."""
    def prioritize(self, tasks: Sequence[TaskSummary]) -> list[PrioritizedTask]: ...


class TaskRepo(Protocol):
    def list_tasks(self, task_filter: TaskFilter = TaskFilter.ALL) -> list[Task]: ...
    def get_task(self, task_id: str) -> Task | None: ...
    def count_tasks(self) -> int: ...

    def add_task(self, fields: TaskFields) -> Task: ...
    def update_task(self, task_id: str, fields: TaskFields) -> bool: ...
    def delete_task(self, task_id: str) -> bool: ...
    def set_completed(self, task_id: str, completed: bool) -> bool: ...

    # Returns the number of rows whose title matched.
    def set_priority_by_title(self, title: str, priority_score: int, reasoning: str) -> int: ...

    def close(self) -> None: ...
