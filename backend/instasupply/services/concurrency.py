# Overview: Session helpers for retries, row locks and savepoints shared by the services.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, rollback: bool = True):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Anything else propagates untouched.

    With rollback=True the whole session is rolled back between attempts,
    discarding any pending work of the caller. Pass rollback=False when func
    undoes its own writes (e.g. runs inside savepoint()) so the enclosing
    transaction survives the retry.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            if rollback:
                db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


@contextmanager
def savepoint():
    """
    Run a block inside a SAVEPOINT.

    An exception inside the block rolls back only the block's writes and is
    re-raised; the enclosing transaction stays usable.
    """
    nested = db.session.begin_nested()
    try:
        yield nested
    except Exception:
        nested.rollback()
        raise
    else:
        nested.commit()
