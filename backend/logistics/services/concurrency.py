# Overview: Scoped transactions, row locks and lock-failure retries shared by every write path.

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() covers it there.
    """
    return query.with_for_update()


def begin_write(session) -> None:
    """
    On SQLite, take the database write lock before the first read.

    Without this a read-then-write sequence in two connections can both read
    the same row before either writes. Other engines rely on lock_for_update.
    """
    if session.get_bind().dialect.name != "sqlite":
        return
    raw = session.connection().connection.driver_connection
    if not raw.in_transaction:
        session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def transaction(session=None):
    """
    Scoped unit of work: acquire, operate, then commit.

    Any exception rolls the session back and propagates unchanged.
    """
    session = session if session is not None else db.session
    try:
        begin_write(session)
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, session=None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Anything else propagates on first raise.
    """
    session = session if session is not None else db.session
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Transaction conflict, retrying (attempt %s of %s)", attempt + 1, attempts
            )
            time.sleep(backoff_base * (2 ** attempt))


def run_in_transaction(func, *, session=None, attempts: int | None = None):
    """Run func inside transaction(), retrying the whole unit on lock failures."""
    session = session if session is not None else db.session
    if attempts is None:
        attempts = current_app.config.get("TX_RETRY_ATTEMPTS", 3)

    def _op():
        with transaction(session):
            return func()

    return run_with_retry(_op, attempts=attempts, session=session)
