from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _get_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an int, got: {raw!r}") from e
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Environment variable {name} must be a boolean, got: {raw!r}")


def _get_env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw


@dataclass(frozen=True)
class Settings:
    # Database
    db_path: Path
    pool_size: int
    pool_timeout_ms: int

    # Requests
    request_timeout_ms: int

    # Server (used by outreach.main when starting uvicorn programmatically)
    host: str
    port: int
    log_level: str
    sql_echo: bool

    @property
    def pool_timeout_s(self) -> float:
        return self.pool_timeout_ms / 1000.0

    @property
    def request_timeout_s(self) -> float:
        return self.request_timeout_ms / 1000.0


def load_settings() -> Settings:
    """
    Loads settings from env vars with sane defaults.

    Env vars:
      - OUTREACH_DB_PATH (default: ./var/outreach.db)
      - OUTREACH_POOL_SIZE (default: 5)
      - OUTREACH_POOL_TIMEOUT_MS (default: 5000)
      - OUTREACH_REQUEST_TIMEOUT_MS (default: 10000)
      - OUTREACH_HOST (default: 127.0.0.1)
      - OUTREACH_PORT (default: 8080)
      - OUTREACH_LOG_LEVEL (default: info)
      - OUTREACH_SQL_ECHO (default: false)
    """
    db_path = Path(_get_env_str("OUTREACH_DB_PATH", "./var/outreach.db")).expanduser()

    pool_size = _get_env_int("OUTREACH_POOL_SIZE", 5)
    if pool_size <= 0:
        raise ValueError("OUTREACH_POOL_SIZE must be > 0")

    pool_timeout_ms = _get_env_int("OUTREACH_POOL_TIMEOUT_MS", 5_000)
    if pool_timeout_ms <= 0:
        raise ValueError("OUTREACH_POOL_TIMEOUT_MS must be > 0")

    request_timeout_ms = _get_env_int("OUTREACH_REQUEST_TIMEOUT_MS", 10_000)
    if request_timeout_ms <= 0:
        raise ValueError("OUTREACH_REQUEST_TIMEOUT_MS must be > 0")

    host = _get_env_str("OUTREACH_HOST", "127.0.0.1")
    port = _get_env_int("OUTREACH_PORT", 8080)
    if not (1 <= port <= 65535):
        raise ValueError("OUTREACH_PORT must be between 1 and 65535")

    log_level = _get_env_str("OUTREACH_LOG_LEVEL", "info").lower()
    sql_echo = _get_env_bool("OUTREACH_SQL_ECHO", False)

    return Settings(
        db_path=db_path,
        pool_size=pool_size,
        pool_timeout_ms=pool_timeout_ms,
        request_timeout_ms=request_timeout_ms,
        host=host,
        port=port,
        log_level=log_level,
        sql_echo=sql_echo,
    )
