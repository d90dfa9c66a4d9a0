# Overview: ORM listeners that keep product history append-only.

"""
Product history is append-only.

SQLAlchemy fires before_update/before_delete for every LogEntry the session
tries to change. Both raise ImmutabilityError, which aborts the flush, so
the surrounding transaction is rolled back and nothing reaches the database.

Bulk SQL (session.execute(delete(...))) bypasses mapper events; only test
fixtures clear tables that way.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import event

from .models import LogEntry


class ImmutabilityError(RuntimeError):
    """Attempted to modify or delete a log entry."""

    def __init__(self, entity_id: str, operation: str):
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(f"Log entry {entity_id} is immutable ({operation} blocked)")


def _check_log_entry_update(mapper, connection, target):
    current_app.logger.error("Blocked UPDATE of log entry %s", target.id)
    raise ImmutabilityError(entity_id=str(target.id), operation="UPDATE")


def _check_log_entry_delete(mapper, connection, target):
    current_app.logger.error("Blocked DELETE of log entry %s", target.id)
    raise ImmutabilityError(entity_id=str(target.id), operation="DELETE")


def register_immutability_listeners() -> None:
    """Idempotent; call once models are imported."""
    if not event.contains(LogEntry, "before_update", _check_log_entry_update):
        event.listen(LogEntry, "before_update", _check_log_entry_update)
    if not event.contains(LogEntry, "before_delete", _check_log_entry_delete):
        event.listen(LogEntry, "before_delete", _check_log_entry_delete)
