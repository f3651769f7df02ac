# src/outreach/storage/statements.py
"""
SQLAlchemy Core statements issued by SequenceStore.

Everything is bound as parameters; the sqlite dialect renders them with
qmark ('?') placeholders.
"""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import Delete, Insert, Select, Update, and_, delete, func, insert, select, update

from outreach.domain.models import SequencePatch, Step, StepPatch

from .schema import sequences, steps

# 5 bound values per step; stays under SQLite's host parameter limit
# (999 on builds older than 3.32).
STEPS_PER_INSERT = 100


def select_sequence(sequence_id: int) -> Select:
    return select(sequences).where(sequences.c.id == sequence_id)


def select_steps(sequence_id: int) -> Select:
    return (
        select(steps)
        .where(steps.c.sequence_id == sequence_id)
        .order_by(steps.c.id.asc())
    )


def insert_sequence(name: str, open_tracking: bool, click_tracking: bool, now: int) -> Insert:
    return (
        insert(sequences)
        .values(
            name=name,
            open_tracking_enabled=open_tracking,
            click_tracking_enabled=click_tracking,
            created_at=now,
            updated_at=now,
        )
        .returning(sequences.c.id, sequences.c.created_at, sequences.c.updated_at)
    )


def insert_steps(sequence_id: int, new_steps: Iterable[Step], now: int) -> list[Insert]:
    """
    Multi-row INSERT ... RETURNING statements, one per chunk of
    STEPS_PER_INSERT steps, in input order.
    """
    rows = [
        {
            "sequence_id": sequence_id,
            "subject": s.subject,
            "content": s.content,
            "created_at": now,
            "updated_at": now,
        }
        for s in new_steps
    ]
    return [
        insert(steps).values(rows[i:i + STEPS_PER_INSERT]).returning(*steps.c)
        for i in range(0, len(rows), STEPS_PER_INSERT)
    ]


def update_sequence_flags(sequence_id: int, patch: SequencePatch, now: int) -> Update:
    return (
        update(sequences)
        .where(sequences.c.id == sequence_id)
        .values(
            open_tracking_enabled=patch.open_tracking_enabled,
            click_tracking_enabled=patch.click_tracking_enabled,
            updated_at=touch(sequences.c.updated_at, now),
        )
        .returning(
            sequences.c.id,
            sequences.c.open_tracking_enabled,
            sequences.c.click_tracking_enabled,
            sequences.c.created_at,
            sequences.c.updated_at,
        )
    )


def update_step(step_id: int, patch: StepPatch, now: int) -> Update:
    return (
        update(steps)
        .where(and_(steps.c.id == step_id, steps.c.sequence_id == patch.sequence_id))
        .values(
            subject=patch.subject,
            content=patch.content,
            updated_at=touch(steps.c.updated_at, now),
        )
        .returning(*steps.c)
    )


def delete_step(step_id: int, sequence_id: int) -> Delete:
    return delete(steps).where(and_(steps.c.id == step_id, steps.c.sequence_id == sequence_id))


def touch(column, now: int):
    # updated_at only ever moves forward, even within the same millisecond
    return func.max(column + 1, now)
