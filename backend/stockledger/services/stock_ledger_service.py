# Overview: Per-product, per-location quantity on hand.

"""
Stock Ledger Invariants (authoritative)

- The ledger answers "how much of product P is at location L"; an
  unrecorded location reads as 0. Always go through get_stock(), never
  the raw rows, so every caller defaults the same way.
- set_stock/apply_delta only update the quantity map. They neither
  validate non-negativity nor write log entries; the mutation engine does
  both, which keeps ledger and audit concerns separately testable.
- Changes are flushed inside the caller's transaction, never committed here.
"""

from __future__ import annotations

from ..models import Product, ProductLocationStock
from ..validation import coerce_int


def _find_row(product: Product, location_id: str) -> ProductLocationStock | None:
    for row in product.stock_rows:
        if row.location_id == location_id:
            return row
    return None


def get_stock(product: Product, location_id: str) -> int:
    row = _find_row(product, location_id)
    return int(row.quantity) if row is not None else 0


def get_total_stock(product: Product) -> int:
    return sum(int(row.quantity) for row in product.stock_rows)


def get_location_stocks(product: Product) -> dict[str, int]:
    return {row.location_id: int(row.quantity) for row in product.stock_rows}


def set_stock(product: Product, location_id: str, new_quantity: int) -> int:
    """Set the quantity at a location; returns delta = new - previous."""
    new_quantity = coerce_int(new_quantity, "new_quantity")

    row = _find_row(product, location_id)
    previous = int(row.quantity) if row is not None else 0
    if row is None:
        row = ProductLocationStock(location_id=location_id, quantity=new_quantity)
        product.stock_rows.append(row)
    else:
        row.quantity = new_quantity

    return new_quantity - previous


def apply_delta(product: Product, location_id: str, delta: int) -> int:
    """Add delta (may be negative) at a location; returns the new quantity."""
    delta = coerce_int(delta, "delta")
    new_quantity = get_stock(product, location_id) + delta
    set_stock(product, location_id, new_quantity)
    return new_quantity
