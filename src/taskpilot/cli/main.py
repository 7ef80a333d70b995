# src/taskpilot/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console UI.
"""

from __future__ import annotations

import logging
import sqlite3
import sys

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..errors import ConfigError
from ..logging_setup import console_level_from_name, setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    setup_logging(log_dir=settings.data_dir, console_level=console_level_from_name(settings.log_level))

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except (ConfigError, sqlite3.Error, OSError) as e:
        logger.error("%s", e)
        return 1

    try:
        run_console_loop(state)
    finally:
        state.task_store.close()
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
