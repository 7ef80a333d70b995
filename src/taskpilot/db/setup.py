# src/taskpilot/db/setup.py

"""
One-time database provisioning.

Reads the schema file, splits it into statements and executes them in order
against the configured database. Exit code 0 on success, 1 on any failure.
"""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from collections.abc import Callable
from pathlib import Path

from ..config import Settings, get_settings
from ..errors import ConfigError
from ..logging_setup import console_level_from_name, setup_logging
from .schema import default_schema_path, split_sql_statements, statement_preview

logger = logging.getLogger(__name__)

Connect = Callable[[str], sqlite3.Connection]


def _default_connect(path: str) -> sqlite3.Connection:
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(path, timeout=30.0)


def run_setup(
    settings: Settings,
    *,
    schema_path: str | Path | None = None,
    connect: Connect = _default_connect,
) -> int:
    if not settings.database_url or not settings.database_url.strip():
        logger.error("TASKPILOT_DATABASE_URL environment variable not set.")
        logger.error("Add the connection string (e.g. sqlite:///data/tasks.sqlite3) to .env and try again.")
        return 1

    try:
        target = settings.database_target()
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    path = Path(schema_path or settings.schema_path or default_schema_path())
    if not path.is_file():
        logger.error("Schema file not found at %s", path)
        return 1

    statements = split_sql_statements(path.read_text("utf-8"))
    if not statements:
        logger.warning("No SQL statements found in %s. Nothing to execute.", path)
        return 0

    if target.kind == "memory":
        logger.warning("memory:// database selected; statements are checked against a throwaway sqlite database.")
        db_path = ":memory:"
    else:
        db_path = target.path
    if target.ssl_disabled:
        logger.debug("TLS disable flag set; not applicable to sqlite connections.")

    logger.info("Found %d SQL statements to execute.", len(statements))

    conn: sqlite3.Connection | None = None
    try:
        logger.info("Connecting to the database...")
        conn = connect(db_path)
        for stmt in statements:
            logger.info("Executing: %s...", statement_preview(stmt))
            conn.execute(stmt)
        conn.commit()
    except (sqlite3.Error, OSError):
        logger.exception("Error setting up the database.")
        logger.error("Check that the connection string is correct and the database file is writable.")
        return 1
    finally:
        if conn is not None:
            logger.info("Closing database connection.")
            conn.close()

    logger.info("Database setup complete.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="taskpilot-setup-db", description="Create the taskpilot schema.")
    parser.add_argument("--schema", type=Path, default=None, help="Path to schema SQL file.")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(log_dir=None, console_level=console_level_from_name(settings.log_level))
    return run_setup(settings, schema_path=args.schema)


if __name__ == "__main__":
    sys.exit(main())
