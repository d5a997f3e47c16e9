# Overview: Transaction boundary, row locking and retry helpers shared by the engine services.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import TransactionFailedError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    Rows already in the session are refreshed from the locked read, so a
    value loaded before the lock was taken is never written back stale.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() takes the
    database write lock up front there instead.
    """
    return query.with_for_update().populate_existing()


def begin_write() -> None:
    """Start the unit with the write lock held (SQLite only)."""
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Retrying after concurrency conflict (attempt %d/%d): %s",
                attempt + 1, attempts, exc,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, description: str, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run `func` as one atomic unit of work.

    - Commits once, after func returns.
    - Any exception rolls the whole unit back; engine errors propagate as-is.
    - Storage failures that survive the retries become TransactionFailedError.
    """
    def _op():
        begin_write()
        try:
            result = func()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except SQLAlchemyError as exc:
        current_app.logger.exception("%s failed; transaction rolled back", description)
        raise TransactionFailedError(
            f"{description} failed; no changes were saved",
            details={"cause": type(exc).__name__},
        ) from exc
