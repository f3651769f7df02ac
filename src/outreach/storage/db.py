# src/outreach/storage/db.py
from __future__ import annotations

import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, exc, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import QueuePool

from outreach.domain.errors import OperationCancelledError, PoolTimeoutError
from outreach.logging import get_logger

_LOG = get_logger(__name__)

# Default wait on a locked database.
BUSY_TIMEOUT_MS = 5_000

# SQLite VM instructions between cancellation checks.
_PROGRESS_STEPS = 100


def create_db_engine(db_path: Path, *, pool_size: int = 5, pool_timeout_s: float = 5.0) -> Engine:
    """
    SQLite engine backed by a bounded QueuePool.

    Notes:
    - No overflow: at most `pool_size` connections exist; checkout waits up
      to `pool_timeout_s` (see `connection`).
    - Pragmas are applied on every new DBAPI connection.
    - pysqlite's implicit transactions are disabled; SQLAlchemy emits BEGIN
      itself so a transaction spans reads as well as writes.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{db_path}",
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout_s,
        connect_args={
            "check_same_thread": False,   # pooled; one borrower at a time
            "timeout": BUSY_TIMEOUT_MS / 1000.0,
        },
    )
    event.listen(engine, "connect", _on_connect)
    event.listen(engine, "begin", _on_begin)
    return engine


def _on_connect(dbapi_conn: sqlite3.Connection, _record) -> None:
    dbapi_conn.isolation_level = None
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL;")
    # steps.sequence_id must reference an existing sequence
    cur.execute("PRAGMA foreign_keys=ON;")
    cur.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS};")
    cur.execute("PRAGMA synchronous=NORMAL;")
    cur.close()


def _on_begin(conn: Connection) -> None:
    conn.exec_driver_sql("BEGIN")


@contextmanager
def connection(engine: Engine) -> Iterator[Connection]:
    """
    Checks a connection out of the pool for one unit of work.

    Raises PoolTimeoutError when none frees up within the pool timeout.
    The pool rolls back anything left open when the connection returns.
    """
    try:
        conn = engine.connect()
    except exc.TimeoutError as e:
        raise PoolTimeoutError(
            "No database connection available",
            details={"pool_size": engine.pool.size()},
        ) from e
    with conn:
        yield conn


def ping(engine: Engine) -> None:
    """
    Round trip on a pooled connection; raises if the database is unusable.
    """
    with connection(engine) as conn:
        conn.execute(text("SELECT 1"))


@dataclass
class CancelScope:
    """
    Cancellation signal for one logical store operation.

    Cancelled once cancel() is called (from any thread) or once the
    monotonic deadline passes.
    """
    deadline: Optional[float] = None
    _event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, timeout_s: float) -> "CancelScope":
        return cls(deadline=time.monotonic() + timeout_s)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining_ms(self) -> Optional[int]:
        if self.deadline is None:
            return None
        return max(1, int((self.deadline - time.monotonic()) * 1000))


@contextmanager
def cancellable(conn: Connection, scope: Optional[CancelScope]) -> Iterator[None]:
    """
    Runs the body with a progress handler that interrupts the in-flight
    statement once `scope` is cancelled, and with lock waits capped at the
    scope's remaining time.

    Only an interrupted statement becomes OperationCancelledError; a lock
    timeout or any other backend error propagates unchanged.
    """
    if scope is None:
        yield
        return

    if scope.cancelled:
        raise OperationCancelledError("Operation cancelled before it started")

    raw: sqlite3.Connection = conn.connection.driver_connection
    remaining = scope.remaining_ms()
    if remaining is not None:
        raw.execute(f"PRAGMA busy_timeout={min(remaining, BUSY_TIMEOUT_MS)};")
    raw.set_progress_handler(lambda: 1 if scope.cancelled else 0, _PROGRESS_STEPS)
    try:
        yield
    except exc.DBAPIError as e:
        if not _interrupted(e):
            raise
        _LOG.warning("Statement aborted by cancellation: %s", e.orig)
        raise OperationCancelledError("Operation cancelled") from e
    finally:
        raw.set_progress_handler(None, 0)
        if remaining is not None:
            raw.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS};")


def _interrupted(err: exc.DBAPIError) -> bool:
    return getattr(err.orig, "sqlite_errorcode", None) == sqlite3.SQLITE_INTERRUPT
