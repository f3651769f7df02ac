# tests/conftest.py
import importlib
import itertools
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Table, func, select
from sqlalchemy.engine import Connection, Engine

from outreach.domain.models import Sequence, Step
from outreach.storage import SequenceStore, create_db_engine, init_schema

_counter = itertools.count(1)

DEFAULT_ENV = {
    "OUTREACH_POOL_SIZE": "2",
    "OUTREACH_POOL_TIMEOUT_MS": "1000",
    "OUTREACH_REQUEST_TIMEOUT_MS": "5000",
    "OUTREACH_LOG_LEVEL": "warning",
}


def _apply_env(monkeypatch: pytest.MonkeyPatch, db_path: Path, overrides: Optional[dict[str, str]] = None) -> None:
    monkeypatch.setenv("OUTREACH_DB_PATH", str(db_path))
    for k, v in DEFAULT_ENV.items():
        monkeypatch.setenv(k, v)
    if overrides:
        for k, v in overrides.items():
            monkeypatch.setenv(k, v)


@contextmanager
def _client_ctx(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, *, overrides: Optional[dict[str, str]] = None,
                db_path: Optional[Path] = None) -> Iterator[TestClient]:
    # Unique DB per client instance unless one is provided
    if db_path is None:
        n = next(_counter)
        db_path = tmp_path / f"outreach_{n}.db"

    _apply_env(monkeypatch, db_path, overrides)

    # Import after env is set; reload to avoid cross-test state
    app_mod = importlib.import_module("outreach.api.app")
    importlib.reload(app_mod)

    with TestClient(app_mod.app) as client:
        yield client


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """
    Default integration test client with a fresh sqlite db per test.
    """
    with _client_ctx(monkeypatch, tmp_path) as c:
        yield c


@pytest.fixture()
def client_factory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """
    Factory for tests that need custom settings.

    Usage:
      with client_factory(overrides={"OUTREACH_POOL_SIZE": "1"}) as client:
          ...
    """

    def _make(*, overrides: Optional[dict[str, str]] = None, db_path: Optional[Path] = None):
        return _client_ctx(monkeypatch, tmp_path, overrides=overrides, db_path=db_path)

    return _make


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    eng = create_db_engine(tmp_path / "outreach.db", pool_size=4, pool_timeout_s=1.0)
    init_schema(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture()
def conn(engine: Engine) -> Iterator[Connection]:
    with engine.connect() as c:
        yield c


@pytest.fixture()
def store(conn: Connection) -> SequenceStore:
    return SequenceStore(conn)


def count_rows(engine: Engine, table: Table) -> int:
    # separate connection so the store's connection never has a transaction left open
    with engine.connect() as c:
        return int(c.execute(select(func.count()).select_from(table)).scalar_one())


def make_sequence(name: str = "Test Sequence", steps: int = 2, **flags) -> Sequence:
    return Sequence(
        name=name,
        open_tracking_enabled=flags.get("open_tracking_enabled", True),
        click_tracking_enabled=flags.get("click_tracking_enabled", False),
        steps=[Step(subject=f"Step {i}", content=f"Content {i}") for i in range(1, steps + 1)],
    )
