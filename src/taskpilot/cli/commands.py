# src/taskpilot/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..errors import TaskValidationError
from ..tasks import task_api
from ..tasks.reconcile import merge_prioritized
from ..tasks.task_models import Task, TaskFilter
from ..tasks.validation import validate_task_input
from .session import ConsoleSession

CommandHandler = Callable[[ConsoleSession, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, session: ConsoleSession, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."
        return handler(session, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def _fmt_dt(dt: datetime) -> str:
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def format_task_line(i: int, t: Task) -> str:
    mark = "x" if t.completed else " "
    score = f"  score={t.priority_score}" if t.priority_score is not None else ""
    return (
        f"{i:>2}. [{mark}] {t.title}  "
        f"({t.importance.value}, due {_fmt_dt(t.deadline)}, {t.predicted_effort}){score}"
    )


def render_list(session: ConsoleSession) -> str:
    if not session.tasks:
        if session.task_filter is TaskFilter.COMPLETED:
            return "No tasks here! You haven't completed any tasks yet."
        return "No tasks here! Get started with /add."
    header = f"Tasks ({session.task_filter.value}, {len(session.tasks)}):"
    return "\n".join([header, *(format_task_line(i, t) for i, t in enumerate(session.tasks, start=1))])


def _format_validation(err: TaskValidationError) -> str:
    lines = ["Task not saved:"]
    for name, msg in err.errors.items():
        lines.append(f"  {name}: {msg}")
    return "\n".join(lines)


def _prompt_fields(session: ConsoleSession, current: Task | None = None) -> dict[str, Any]:
    """Ask for each field. On edit, an empty answer keeps the current value."""

    def ask(label: str, default: str) -> str:
        suffix = f" [{default}]" if default else ""
        answer = session.ask(f"{label}{suffix}: ").strip()
        return answer or default

    return {
        "title": ask("Title", current.title if current else ""),
        "description": ask("Description", current.description if current else ""),
        "deadline": ask(
            "Deadline (YYYY-MM-DD or YYYY-MM-DDTHH:MM)",
            current.deadline.astimezone().strftime("%Y-%m-%dT%H:%M") if current else "",
        ),
        "importance": ask(
            "Importance (low/medium/high)",
            current.importance.value if current else "medium",
        ),
        "predicted_effort": ask(
            "Predicted effort (e.g. 2 hours)",
            current.predicted_effort if current else "",
        ),
    }


def _after_mutation(session: ConsoleSession, message: str) -> str:
    err = session.refresh()
    if err:
        return f"{message}\n{err}"
    return f"{message}\n{render_list(session)}"


# ---- handlers ----


def cmd_help(session: ConsoleSession, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(session: ConsoleSession, args: list[str]) -> str:
    """
    /list             -> current filter
    /list active      -> switch filter (all | active | completed)
    """
    flt: TaskFilter | None = None
    if args:
        try:
            flt = TaskFilter(args[0].lower())
        except ValueError:
            return "Usage: /list [all|active|completed]"
    err = session.refresh(flt)
    if err:
        return err
    return render_list(session)


def cmd_add(session: ConsoleSession, args: list[str]) -> str:
    raw = _prompt_fields(session)
    try:
        fields = validate_task_input(raw)
    except TaskValidationError as e:
        return _format_validation(e)

    result = task_api.add_task(session.state, fields)
    if not result.success:
        return result.error or task_api.ADD_FAILED
    return _after_mutation(session, "Task created.")


def cmd_edit(session: ConsoleSession, args: list[str]) -> str:
    if not args:
        return "Usage: /edit <n|id>"
    task = session.resolve(args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    raw = _prompt_fields(session, current=task)
    try:
        fields = validate_task_input(raw)
    except TaskValidationError as e:
        return _format_validation(e)

    result = task_api.update_task(session.state, task.id, fields)
    if not result.success:
        return result.error or task_api.UPDATE_FAILED
    return _after_mutation(session, "Task updated.")


def cmd_delete(session: ConsoleSession, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <n|id>"
    task = session.resolve(args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    answer = session.ask(f"Delete {task.title!r}? This cannot be undone. [y/N]: ").strip().lower()
    if answer not in ("y", "yes"):
        return "Cancelled."

    result = task_api.delete_task(session.state, task.id)
    if not result.success:
        return result.error or task_api.DELETE_FAILED
    return _after_mutation(session, "Task deleted.")


def _toggle(session: ConsoleSession, args: list[str], completed: bool) -> str:
    if not args:
        return "Usage: /done <n|id> or /undo <n|id>"
    task = session.resolve(args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    result = task_api.toggle_task_complete(session.state, task.id, completed)
    if not result.success:
        return result.error or task_api.TOGGLE_FAILED
    return _after_mutation(session, "Marked as done." if completed else "Marked as not done.")


def cmd_done(session: ConsoleSession, args: list[str]) -> str:
    return _toggle(session, args, True)


def cmd_undo(session: ConsoleSession, args: list[str]) -> str:
    return _toggle(session, args, False)


def cmd_show(session: ConsoleSession, args: list[str]) -> str:
    if not args:
        return "Usage: /show <n|id>"
    t = session.resolve(args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    lines = [
        f"{t.title}  [{'done' if t.completed else 'open'}]",
        f"  id:          {t.id}",
        f"  description: {t.description}",
        f"  deadline:    {_fmt_dt(t.deadline)}",
        f"  importance:  {t.importance.value}",
        f"  effort:      {t.predicted_effort}",
        f"  created:     {_fmt_dt(t.created_at)}",
    ]
    if t.priority_score is not None:
        lines.append(f"  score:       {t.priority_score}")
        lines.append(f"  reasoning:   {t.reasoning}")
    return "\n".join(lines)


def cmd_prioritize(session: ConsoleSession, args: list[str]) -> str:
    listing = task_api.get_tasks(session.state, TaskFilter.ALL)
    if not listing.success:
        return listing.error or task_api.FETCH_FAILED
    all_tasks = listing.data or []
    if not all_tasks:
        return "Nothing to prioritize. Add a task first."

    result = task_api.get_prioritized_tasks(session.state, all_tasks)
    if not result.success:
        return f"Prioritization failed: {result.error}"

    merged = merge_prioritized(all_tasks, result.data or [])
    session.tasks = [t for t in merged if session.task_filter.matches(t)]
    return f"Tasks prioritized! Your tasks have been re-ordered.\n{render_list(session)}"


def cmd_status(session: ConsoleSession, args: list[str]) -> str:
    state = session.state
    store = type(state.task_store).__name__
    try:
        total = state.task_store.count_tasks()
    except Exception:
        logger.exception("count_tasks failed")
        total = -1
    cache = state.view_cache
    return (
        "Status:\n"
        f"  Store: {store} ({total} tasks)\n"
        f"  Filter: {session.task_filter.value}\n"
        f"  View cache: {cache.hits} hits / {cache.misses} misses"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks: /list [all|active|completed].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task (prompts for each field).", aliases=["new"])
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <n|id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <n|id>.", aliases=["rm"])
registry.register("done", cmd_done, help_text="Mark a task as done: /done <n|id>.")
registry.register("undo", cmd_undo, help_text="Mark a task as not done: /undo <n|id>.")
registry.register("show", cmd_show, help_text="Show task details and AI reasoning: /show <n|id>.")
registry.register("prioritize", cmd_prioritize, help_text="Re-score and re-order all tasks with AI.", aliases=["p"])
registry.register("status", cmd_status, help_text="Show store, filter and cache status.")
