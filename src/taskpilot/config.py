# src/taskpilot/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- The database connection string is the only value the setup script insists on.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

from dotenv import load_dotenv

from .errors import ConfigError

ENV_PREFIX = "TASKPILOT"

MEMORY_DATABASE_URL = "memory://"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class DatabaseTarget:
    """Parsed connection string."""

    kind: str  # "sqlite" | "memory"
    path: str  # filesystem path or ":memory:" for sqlite; "" for memory
    ssl_disabled: bool


def parse_database_url(url: str | None, *, ssl_disabled: bool = False) -> DatabaseTarget:
    """
    Accepted forms:
      memory://                     -> in-process store, nothing persisted
      sqlite:///relative/or/abs.db  -> sqlite file
      sqlite://:memory:             -> sqlite in-memory database
      /some/path.sqlite3            -> bare path, treated as sqlite
    A `sslmode=disable` query parameter sets ssl_disabled.
    """
    if url is None or not url.strip():
        raise ConfigError("Database connection string is not set. Set TASKPILOT_DATABASE_URL.")

    raw = url.strip()
    parts = urlsplit(raw)
    query = parse_qs(parts.query)
    if "disable" in [v.lower() for v in query.get("sslmode", [])]:
        ssl_disabled = True

    scheme = parts.scheme.lower()
    if scheme == "memory":
        return DatabaseTarget(kind="memory", path="", ssl_disabled=ssl_disabled)

    if scheme in ("sqlite", "sqlite3"):
        # sqlite:///foo.db -> netloc "" path "/foo.db"; sqlite:////abs/foo.db -> "//abs/foo.db"
        if parts.netloc == ":memory:" or parts.path in ("/:memory:", ":memory:"):
            return DatabaseTarget(kind="sqlite", path=":memory:", ssl_disabled=ssl_disabled)
        path = parts.netloc + parts.path
        if path.startswith("/"):
            path = path[1:]
        if not path:
            raise ConfigError(f"sqlite connection string has no path: {raw!r}")
        return DatabaseTarget(kind="sqlite", path=path, ssl_disabled=ssl_disabled)

    if scheme and len(scheme) > 1:
        raise ConfigError(
            f"Unsupported database scheme {scheme!r}. Use sqlite:///<path> or memory://."
        )

    # Bare path (a one-letter "scheme" is a Windows drive letter).
    return DatabaseTarget(kind="sqlite", path=raw.split("?", 1)[0], ssl_disabled=ssl_disabled)


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Database ----
    database_url: str | None
    db_ssl_disabled: bool
    schema_path: Path | None

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]

    # ---- Prioritization ----
    prioritize_max_workers: int

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "taskpilot") or "taskpilot"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskpilot"))

        database_url = _first_env(_k("DATABASE_URL"), "DATABASE_URL", default=None)
        db_ssl_disabled = _env_bool(_k("DB_SSL_DISABLED"), False)

        raw_schema = _first_env(_k("SCHEMA_PATH"), default=None)
        schema_path = Path(raw_schema).expanduser() if raw_schema else None

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "qwen/qwen-2.5-72b-instruct:free",
                "deepseek/deepseek-chat-v3-0324:free",
            ],
        )

        prioritize_max_workers = max(1, _env_int(_k("PRIORITIZE_MAX_WORKERS"), 8))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            database_url=database_url,
            db_ssl_disabled=db_ssl_disabled,
            schema_path=schema_path,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            prioritize_max_workers=prioritize_max_workers,
        )

    def database_target(self) -> DatabaseTarget:
        return parse_database_url(self.database_url, ssl_disabled=self.db_ssl_disabled)


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Settings are read lazily so tests and scripts can adjust the env first."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def reset_settings() -> None:
    global _SETTINGS
    _SETTINGS = None
