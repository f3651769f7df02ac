# src/outreach/api/deps.py
from __future__ import annotations

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.engine import Connection, Engine

from outreach.config import Settings
from outreach.storage import CancelScope, SequenceStore, connection


def get_settings(request: Request) -> Settings:
    """
    Per-request access to settings stored on app.state during startup.
    """
    return request.app.state.settings  # type: ignore[attr-defined]


def get_engine(request: Request) -> Engine:
    return request.app.state.engine  # type: ignore[attr-defined]


def get_conn(
    engine: Engine = Depends(get_engine),
) -> Generator[Connection, None, None]:
    """
    Borrows a pooled connection for the lifetime of the request.
    """
    with connection(engine) as conn:
        yield conn


def get_scope(settings: Settings = Depends(get_settings)) -> CancelScope:
    """
    Cancellation scope bounded by the configured request timeout.
    """
    return CancelScope.with_timeout(settings.request_timeout_s)


def get_store(
    conn: Connection = Depends(get_conn),
    scope: CancelScope = Depends(get_scope),
) -> SequenceStore:
    return SequenceStore(conn, scope=scope)
