# src/taskpilot/db/schema.py

from __future__ import annotations

import logging
import re
import sqlite3
from importlib import resources
from pathlib import Path

logger = logging.getLogger(__name__)

_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_STATEMENT_END = re.compile(r";\s*$", re.MULTILINE)


def split_sql_statements(sql: str) -> list[str]:
    """
    Split a schema script into executable statements.

    - statements end at a semicolon that closes a line
    - chunks holding only `--` comments and whitespace are dropped
    - kept chunks are returned as written, comments included

    Semicolons in the middle of a line (e.g. inside a string literal) do not split.
    """
    out: list[str] = []
    for chunk in _STATEMENT_END.split(sql):
        if _LINE_COMMENT.sub("", chunk).strip():
            out.append(chunk.strip())
    return out


def default_schema_path() -> Path:
    return Path(str(resources.files("taskpilot.db").joinpath("schema.sql")))


def read_schema(path: str | Path | None = None) -> str:
    if path is None:
        return resources.files("taskpilot.db").joinpath("schema.sql").read_text("utf-8")
    return Path(path).read_text("utf-8")


def apply_schema(conn: sqlite3.Connection, statements: list[str] | None = None) -> int:
    """Execute schema statements in order and commit. Returns the number executed."""
    if statements is None:
        statements = split_sql_statements(read_schema())
    for stmt in statements:
        conn.execute(stmt)
    conn.commit()
    logger.debug("Schema applied: %d statements", len(statements))
    return len(statements)


def statement_preview(stmt: str, width: int = 70) -> str:
    """One-line head of a statement for logs, comments removed."""
    return " ".join(_LINE_COMMENT.sub("", stmt).split())[:width]
