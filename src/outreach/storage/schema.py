# src/outreach/storage/schema.py
from __future__ import annotations

from sqlalchemy import Boolean, Column, ForeignKey, Integer, MetaData, Table, Text
from sqlalchemy.engine import Engine

from outreach.logging import get_logger

_LOG = get_logger(__name__)

metadata = MetaData()

# Timestamps are epoch milliseconds assigned by the store.
sequences = Table(
    "sequences",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("open_tracking_enabled", Boolean, nullable=False, default=False),
    Column("click_tracking_enabled", Boolean, nullable=False, default=False),
    Column("created_at", Integer, nullable=False),
    Column("updated_at", Integer, nullable=False),
    sqlite_autoincrement=True,
)

steps = Table(
    "steps",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("sequence_id", Integer, ForeignKey("sequences.id"), nullable=False, index=True),
    Column("subject", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", Integer, nullable=False),
    Column("updated_at", Integer, nullable=False),
    # ids never get reused, so ascending id is insertion order
    sqlite_autoincrement=True,
)


def init_schema(engine: Engine) -> None:
    """
    Creates the sequences and steps tables if they do not exist yet.

    Safe to run on every startup. There is no versioning: schema changes
    are applied outside this service.
    """
    metadata.create_all(engine, checkfirst=True)
    _LOG.info("Schema ready.")
