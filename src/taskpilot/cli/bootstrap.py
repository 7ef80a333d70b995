# src/taskpilot/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task store from the connection string,
- wires the LLM prioritizer (offline fallback) into AppState.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import LLMClient, TaskRepo
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient, friendly_llm_error_message
from ..llm.offline import OfflineLLMClient
from ..prioritization.flow import LLMPrioritizer
from ..tasks.memory_store import InMemoryTaskStore
from ..tasks.task_store import SqliteTaskStore

logger = logging.getLogger(__name__)


def create_task_store(settings: Settings) -> TaskRepo:
    """Raises ConfigError when the connection string is missing or malformed."""
    target = settings.database_target()
    if target.kind == "memory":
        logger.info("Using in-memory task store (nothing is persisted).")
        return InMemoryTaskStore()
    if target.ssl_disabled:
        logger.debug("TLS disable flag set; not applicable to sqlite connections.")
    return SqliteTaskStore(target.path)


def create_llm_client(settings: Settings) -> LLMClient:
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        logger.info("%s Using offline prioritizer.", friendly_llm_error_message(e))
        return OfflineLLMClient()


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    return AppState(
        settings=settings,
        task_store=create_task_store(settings),
        prioritizer=LLMPrioritizer(create_llm_client(settings)),
    )
