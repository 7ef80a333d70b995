# src/taskpilot/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_list
from ..cli.session import Ask, ConsoleSession
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def run_console_loop(
    state: AppState,
    *,
    ask: Ask = input,
    emit: Callable[[str], None] = print,
) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "taskpilot"))
    session = ConsoleSession(state=state, ask=ask)

    emit(f"[{_ts_local()}] {app_name}: use /help for commands, /exit to quit.")
    err = session.refresh()
    emit(err or render_list(session))

    while True:
        try:
            line = ask(f"{app_name}> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            emit("")
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not line.startswith("/"):
            emit("Commands start with '/'. Use /help to list them.")
            continue

        try:
            response = command_registry.handle(session, line)
        except EOFError:
            emit("Input closed; command cancelled.")
            break
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            emit(response)

    logger.info("Console connector finished.")
