# src/outreach/logging.py
from __future__ import annotations

import logging
import logging.config
from typing import Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def configure_logging(log_level: str = "info", *, sql_echo: bool = False) -> None:
    """
    Routes the service, uvicorn and SQLAlchemy loggers to one stdout handler.

    Re-running replaces the previous configuration (the test suite reloads
    the app for every client). With `sql_echo`, every statement SQLAlchemy
    emits is logged at INFO.
    """
    level = _LEVELS.get(log_level.lower().strip(), logging.INFO)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": _FORMAT, "datefmt": _DATEFMT},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": {
                "uvicorn.access": {"level": max(level, logging.INFO)},
                "sqlalchemy.engine": {"level": logging.INFO if sql_echo else logging.WARNING},
                "sqlalchemy.pool": {"level": logging.WARNING},
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "outreach")
