# Overview: Row locking and retry helpers for stock-changing transactions.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking to a query (SELECT ... FOR UPDATE).

    NOTE: SQLite ignores FOR UPDATE; there the Product.version_id optimistic
    lock is what detects a concurrent writer.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() as one unit of work, retrying on concurrency conflicts.

    func must be safe to re-run from scratch: it re-reads everything it needs,
    and a failed attempt is rolled back before the next one starts. Non-retryable
    exceptions roll back and propagate immediately.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt >= attempts:
                current_app.logger.error(
                    "Giving up after %d attempts: %s", attempts, exc.__class__.__name__
                )
                raise
            current_app.logger.warning(
                "Concurrency conflict (%s), retrying attempt %d/%d",
                exc.__class__.__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
        except Exception:
            db.session.rollback()
            raise
