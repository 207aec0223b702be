from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_COMPLETION_DELETE_DELAY = 3.0


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'sqlite' (default) or 'memory'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - COMPLETION_DELETE_DELAY: seconds between completing a task and its removal (default: 3)
    - LOG_LEVEL: log level name (default: INFO)
    - LOG_FORMAT: 'console' (default) or 'json'
    """

    persistence_backend: str = "sqlite"
    sqlite_db_path: str = "./data/tasks.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    completion_delete_delay: float = DEFAULT_COMPLETION_DELETE_DELAY
    log_level: str = "INFO"
    log_format: str = "console"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_delay(value: str, default: float) -> float:
    try:
        delay = float(value.strip())
    except ValueError:
        return default
    if delay < 0:
        return default
    return delay


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "sqlite").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to the durable backend if unsupported
        backend = "sqlite"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/tasks.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    delay = _parse_delay(
        _get_env("COMPLETION_DELETE_DELAY", str(DEFAULT_COMPLETION_DELETE_DELAY)),
        DEFAULT_COMPLETION_DELETE_DELAY,
    )

    log_format = _get_env("LOG_FORMAT", "console").strip().lower()
    if log_format not in {"console", "json"}:
        log_format = "console"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        completion_delete_delay=delay,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )
