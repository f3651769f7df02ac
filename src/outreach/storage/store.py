# src/outreach/storage/store.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.engine import Connection

from outreach.domain.errors import NotFoundError
from outreach.domain.models import Sequence, SequenceFlags, SequencePatch, Step, StepPatch
from outreach.logging import get_logger

from . import statements
from .db import CancelScope, cancellable

_LOG = get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SequenceStore:
    """
    Repository encapsulating all SQL access for sequences and their steps.

    Important invariants:
    - A sequence and its steps are created in one transaction (all-or-nothing).
    - Steps are always read in ascending id order.
    - Step updates/deletes match on (id, sequence_id) together.
    - A missing row is reported as NotFoundError; every other failure is the
      backend's own exception (sqlalchemy.exc.DBAPIError wrapping the
      driver error), unchanged.

    Each operation runs in its own transaction on `conn`, which must not have
    one open already.
    """
    conn: Connection
    scope: Optional[CancelScope] = None

    # -------------------------
    # Read operations
    # -------------------------

    def fetch_sequence(self, sequence_id: int) -> Sequence:
        with self.conn.begin(), cancellable(self.conn, self.scope):
            row = self.conn.execute(statements.select_sequence(sequence_id)).mappings().first()
            if row is None:
                raise NotFoundError(
                    f"Sequence not found: {sequence_id}",
                    details={"id": sequence_id},
                )
            step_rows = self.conn.execute(statements.select_steps(sequence_id)).mappings().all()

        return Sequence(
            id=row["id"],
            name=row["name"],
            open_tracking_enabled=row["open_tracking_enabled"],
            click_tracking_enabled=row["click_tracking_enabled"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            steps=[_step_from_row(r) for r in step_rows],
        )

    # -------------------------
    # Write operations
    # -------------------------

    def create_sequence(self, sequence: Sequence) -> Sequence:
        """
        Inserts a sequence and all of its steps in a single transaction.

        The assigned ids and timestamps are written back into `sequence`,
        whose steps are replaced by the persisted rows (ascending id, which
        is input order). Returns the same object. On any failure nothing is
        persisted and `sequence` may be partially updated.
        """
        now = now_ms()
        # Leaving begin() commits, or rolls back on any exception.
        with self.conn.begin(), cancellable(self.conn, self.scope):
            row = self.conn.execute(
                statements.insert_sequence(
                    sequence.name,
                    sequence.open_tracking_enabled,
                    sequence.click_tracking_enabled,
                    now,
                )
            ).mappings().one()
            sequence.id = row["id"]
            sequence.created_at = row["created_at"]
            sequence.updated_at = row["updated_at"]

            inserted: list[Mapping[str, Any]] = []
            for stmt in statements.insert_steps(sequence.id, sequence.steps, now):
                inserted.extend(self.conn.execute(stmt).mappings().all())
            if inserted:
                # SQLite does not guarantee RETURNING order
                inserted.sort(key=lambda r: r["id"])
                sequence.steps = [_step_from_row(r) for r in inserted]

        _LOG.info("Created sequence %s with %d step(s)", sequence.id, len(sequence.steps))
        return sequence

    def update_sequence(self, sequence_id: int, patch: SequencePatch) -> SequenceFlags:
        """
        Sets both tracking flags and refreshes updated_at. Name and steps are
        left alone. Returns the values read back by the UPDATE itself.
        """
        with self.conn.begin(), cancellable(self.conn, self.scope):
            row = self.conn.execute(
                statements.update_sequence_flags(sequence_id, patch, now_ms())
            ).mappings().first()
            if row is None:
                raise NotFoundError(f"Sequence not found: {sequence_id}", details={"id": sequence_id})

        return SequenceFlags(**row)

    def update_step(self, step_id: int, patch: StepPatch) -> Step:
        """
        Replaces subject/content of a step owned by patch.sequence_id.
        """
        with self.conn.begin(), cancellable(self.conn, self.scope):
            row = self.conn.execute(statements.update_step(step_id, patch, now_ms())).mappings().first()
            if row is None:
                raise NotFoundError(
                    f"Step not found: {step_id}",
                    details={"id": step_id, "sequence_id": patch.sequence_id},
                )

        return _step_from_row(row)

    def delete_step(self, step_id: int, sequence_id: int) -> None:
        with self.conn.begin(), cancellable(self.conn, self.scope):
            deleted = self.conn.execute(statements.delete_step(step_id, sequence_id)).rowcount

            # DELETE raises nothing when no row matches; the count is the only signal.
            if deleted == 0:
                raise NotFoundError(
                    f"Step not found: {step_id}",
                    details={"id": step_id, "sequence_id": sequence_id},
                )


def _step_from_row(row: Mapping[str, Any]) -> Step:
    return Step(
        id=row["id"],
        sequence_id=row["sequence_id"],
        subject=row["subject"],
        content=row["content"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
