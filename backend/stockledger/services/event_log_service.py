# Overview: Append-only product history (event log) writes and reads.

from __future__ import annotations

from ..extensions import db
from ..models import LogEntry, Product
from ..models.ledger import LOG_TYPES
from ..time_utils import utcnow
from .context_service import Actor, resolve_actor
from .reference_service import new_log_entry_id
"""
Event Log Invariants (authoritative)

- Append-only: entries are added to Product.history and never updated or
  deleted (enforced by stockledger.immutability).
- Insertion order is chronological order; sequence is 1-based per product.
- Entries are written inside the same transaction as the mutation they
  record.
- authorizer_name defaults to the acting user's name.
"""


def append_log_entry(
    product: Product,
    *,
    entry_type: str,
    event_number: str,
    change: str,
    quantity: str | None = None,
    location_id: str | None = None,
    actor: Actor | None = None,
) -> LogEntry:
    """
    Append one entry to a product's history.

    Also bumps product.updated_at so every logged mutation goes through the
    product's optimistic version check.
    """
    if entry_type not in LOG_TYPES:
        raise ValueError(f"Unknown log entry type {entry_type!r}")

    actor = resolve_actor(actor)
    now = utcnow()

    entry = LogEntry(
        id=new_log_entry_id(),
        sequence=len(product.history) + 1,
        type=entry_type,
        event_number=event_number,
        change=change,
        date=now,
        quantity=quantity,
        user_id=actor.user_id,
        user_name=actor.user_name,
        authorizer_name=actor.authorized_by,
        location_id=location_id,
    )
    product.history.append(entry)
    product.updated_at = now
    db.session.flush()  # assigns the row before the next entry computes its sequence
    return entry


def list_history(product: Product, *, types: set[str] | None = None) -> list[LogEntry]:
    """Chronological history, optionally filtered by type."""
    entries = list(product.history)
    if types:
        entries = [e for e in entries if e.type in types]
    return entries


def find_entries_by_event_number(event_number: str) -> list[LogEntry]:
    """All entries (any product) carrying a reference, e.g. a batch or order id."""
    return (
        db.session.query(LogEntry)
        .filter(LogEntry.event_number == event_number)
        .order_by(LogEntry.date.asc(), LogEntry.product_id.asc(), LogEntry.sequence.asc())
        .all()
    )
