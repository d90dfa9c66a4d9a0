# Overview: Transaction boundary and locking hooks for every mutation.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Lock the product or order row a mutation is about to rewrite.

    On the in-memory SQLite store this emits no lock; Product.version_id is
    what catches a concurrent restock there. A server database configured
    through SQLALCHEMY_DATABASE_URI holds the row until commit.
    """
    return query.with_for_update()


def run_atomic(func):
    """
    Run a mutation as one unit: commit on success, roll back on any error.

    Partial application is never visible: a failure half-way through a bulk
    update leaves every product as it was.
    """
    try:
        result = func()
        db.session.commit()
        return result
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func through run_atomic, replaying it when a concurrent writer won.

    A StaleDataError means another restock, price change or confirmation
    bumped Product.version_id first; an OperationalError is a busy database.
    Each replay starts from a rolled-back session, so func re-reads stock
    before computing its delta. Validation and permission errors are raised
    on the first attempt.
    """
    for attempt in range(1, attempts + 1):
        try:
            return run_atomic(func)
        except (OperationalError, StaleDataError) as exc:
            if attempt == attempts:
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            current_app.logger.warning(
                "Retrying after %s (attempt %d of %d)", type(exc).__name__, attempt, attempts,
            )
            time.sleep(delay)
