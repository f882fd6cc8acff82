from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_PORT: port the HTTP transport listens on (default 8080)
    - TODO_DB_PATH: path to the sqlite database file. Default './data/todo.db'
    - TODO_DB_POOL_SIZE: maximum number of pooled store connections (default 10)
    - TODO_DB_ACQUIRE_TIMEOUT: seconds to wait for a free connection (default 5)
    - TODO_DB_STATEMENT_TIMEOUT: seconds a single statement may run (default 30)
    - TODO_LOG_LEVEL: root log level name (default INFO)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    """

    port: int
    db_path: str
    pool_size: int
    acquire_timeout: float
    statement_timeout: float
    log_level: str
    cors_allow_origins: List[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int, minimum: int = 1) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _parse_seconds(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


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
    log_level = _get_env("TODO_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        port=_parse_int(_get_env("TODO_PORT", "8080"), 8080),
        db_path=_get_env("TODO_DB_PATH", "./data/todo.db").strip(),
        pool_size=_parse_int(_get_env("TODO_DB_POOL_SIZE", "10"), 10),
        acquire_timeout=_parse_seconds(_get_env("TODO_DB_ACQUIRE_TIMEOUT", "5"), 5.0),
        statement_timeout=_parse_seconds(_get_env("TODO_DB_STATEMENT_TIMEOUT", "30"), 30.0),
        log_level=log_level,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
    )
