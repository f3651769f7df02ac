# src/outreach/domain/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class OutreachError(Exception):
    """
    Base domain error.

    The API layer maps these to HTTP responses. Backend failures
    (sqlalchemy.exc.DBAPIError) are never wrapped in one of these.
    """
    message: str
    code: str = "OUTREACH_ERROR"
    details: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


@dataclass
class NotFoundError(OutreachError):
    """Targeted row is missing, or belongs to another sequence."""
    code: str = "NOT_FOUND"


@dataclass
class PoolTimeoutError(OutreachError):
    code: str = "POOL_TIMEOUT"


@dataclass
class OperationCancelledError(OutreachError):
    code: str = "CANCELLED"
