# tests/test_cancellation.py
import sqlite3
import time

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import insert
from sqlalchemy.engine import Connection, Engine

from conftest import count_rows, make_sequence
from outreach.domain.errors import OperationCancelledError
from outreach.domain.models import SequencePatch, StepPatch
from outreach.storage import CancelScope, SequenceStore
from outreach.storage.db import BUSY_TIMEOUT_MS
from outreach.storage.schema import sequences, steps


class _CancelAfterStart(CancelScope):
    """Passes the pre-flight check, then reports cancelled on every later check."""

    def __init__(self) -> None:
        super().__init__()
        self.checks = 0

    @property
    def cancelled(self) -> bool:
        self.checks += 1
        return self.checks > 1


def _busy_timeout(conn: Connection) -> int:
    return conn.connection.driver_connection.execute("PRAGMA busy_timeout;").fetchone()[0]


def test_cancelled_scope_fails_fast_without_writing(conn: Connection, engine: Engine):
    scope = CancelScope()
    scope.cancel()
    store = SequenceStore(conn, scope=scope)

    with pytest.raises(OperationCancelledError):
        store.create_sequence(make_sequence())

    assert count_rows(engine, sequences) == 0
    assert count_rows(engine, steps) == 0


def test_expired_deadline_cancels_reads(conn: Connection):
    seq = SequenceStore(conn).create_sequence(make_sequence())
    store = SequenceStore(conn, scope=CancelScope(deadline=time.monotonic() - 1.0))

    with pytest.raises(OperationCancelledError) as exc:
        store.fetch_sequence(seq.id)
    assert exc.value.code == "CANCELLED"


def test_cancellation_mid_create_rolls_back(conn: Connection, engine: Engine):
    scope = _CancelAfterStart()
    store = SequenceStore(conn, scope=scope)

    with pytest.raises(OperationCancelledError) as exc:
        store.create_sequence(make_sequence(steps=200))

    # raised by the interrupted statement, not by the pre-flight check
    cause = exc.value.__cause__
    assert isinstance(cause, sa_exc.OperationalError)
    assert cause.orig.sqlite_errorcode == sqlite3.SQLITE_INTERRUPT

    assert scope.checks > 1
    assert not conn.in_transaction()
    assert count_rows(engine, sequences) == 0
    assert count_rows(engine, steps) == 0


def test_lock_wait_is_bounded_by_deadline_and_not_cancellation(conn: Connection, engine: Engine):
    seq = SequenceStore(conn).create_sequence(make_sequence())
    target = seq.steps[0]

    with engine.connect() as blocker:
        blocker.begin()
        blocker.execute(
            insert(sequences).values(
                name="holds the write lock",
                open_tracking_enabled=False,
                click_tracking_enabled=False,
                created_at=1,
                updated_at=1,
            )
        )

        store = SequenceStore(conn, scope=CancelScope.with_timeout(0.2))
        started = time.monotonic()
        with pytest.raises(sa_exc.OperationalError) as exc:
            store.update_step(target.id, StepPatch(sequence_id=seq.id, subject="s", content="c"))
        elapsed = time.monotonic() - started

        blocker.rollback()

    assert not isinstance(exc.value, OperationCancelledError)
    assert exc.value.orig.sqlite_errorcode & 0xFF == sqlite3.SQLITE_BUSY
    assert elapsed < 2.0
    assert _busy_timeout(conn) == BUSY_TIMEOUT_MS

    # the lock is gone; the same store connection writes normally
    updated = SequenceStore(conn).update_step(
        target.id, StepPatch(sequence_id=seq.id, subject="s", content="c")
    )
    assert updated.subject == "s"


def test_scope_without_deadline_keeps_default_busy_timeout(conn: Connection):
    seq = SequenceStore(conn, scope=CancelScope()).create_sequence(make_sequence())

    assert seq.id is not None
    assert _busy_timeout(conn) == BUSY_TIMEOUT_MS


def test_connection_usable_after_cancellation(conn: Connection):
    scope = CancelScope()
    scope.cancel()
    with pytest.raises(OperationCancelledError):
        SequenceStore(conn, scope=scope).update_sequence(
            1, SequencePatch(open_tracking_enabled=True, click_tracking_enabled=True)
        )

    # progress handler is gone; a fresh scope works on the same connection
    store = SequenceStore(conn, scope=CancelScope.with_timeout(5.0))
    seq = store.create_sequence(make_sequence())
    assert store.fetch_sequence(seq.id).id == seq.id


def test_remaining_ms_tracks_deadline():
    assert CancelScope().remaining_ms() is None
    assert CancelScope(deadline=time.monotonic() - 5.0).remaining_ms() == 1
    assert 0 < CancelScope.with_timeout(2.0).remaining_ms() <= 2000
