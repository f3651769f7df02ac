"""
Storage layer for outreach sequences (SQLite via SQLAlchemy Core).

- db: engine + pool, connection checkout, cancellation
- schema: table definitions and bootstrap
- statements: the parameterized statements the store issues
- store: SequenceStore, the transactional data access operations
"""

from .db import CancelScope, connection, create_db_engine, ping
from .schema import init_schema
from .store import SequenceStore

__all__ = ["CancelScope", "connection", "create_db_engine", "ping", "init_schema", "SequenceStore"]
