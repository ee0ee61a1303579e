# Overview: Allocates human-readable order numbers from an atomic counter row.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import OrderSequence
from .concurrency import run_with_retry, savepoint

ORDER_SEQUENCE = "ORDER"
ORDER_PREFIX = "INS"


class SequenceError(Exception):
    """Raised when sequence allocation fails."""
    pass


def _current_value(name: str) -> int:
    return (
        db.session.query(OrderSequence.next_number)
        .filter_by(name=name)
        .scalar()
    )


def next_sequence_value(name: str) -> int:
    """
    Atomically allocate the next value of a named counter.

    Runs in the caller's transaction: the allocation commits or rolls back
    together with whatever uses the number. Each attempt runs in its own
    savepoint, so a retried lock error leaves the caller's pending writes
    in place.
    """
    if not name:
        raise SequenceError("sequence name is required")

    stmt = (
        update(OrderSequence)
        .where(OrderSequence.name == name)
        .values(next_number=OrderSequence.next_number + 1)
    )

    def _allocate() -> int:
        result = db.session.execute(stmt)
        if result.rowcount:
            return _current_value(name) - 1

        # First use: create the counter row. A concurrent creator wins the
        # unique constraint; fall back to incrementing its row.
        try:
            with savepoint():
                db.session.add(OrderSequence(name=name, next_number=2))
                db.session.flush()
            return 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            return _current_value(name) - 1

    def _op() -> int:
        with savepoint():
            return _allocate()

    return run_with_retry(_op, rollback=False)


def next_order_number(*, prefix: str = ORDER_PREFIX, pad: int = 4) -> str:
    """'INS0001', 'INS0002', ... one monotonic counter per database."""
    value = next_sequence_value(ORDER_SEQUENCE)
    return f"{prefix}{value:0{pad}d}"
