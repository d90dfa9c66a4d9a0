# Overview: Stock and price mutations; every change is paired with a history entry.

# backend/stockledger/services/inventory_service.py

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Location, LogEntry, Product
from ..models.ledger import LOG_TYPE_PRICE_CHANGE, LOG_TYPE_RESTOCK, LOG_TYPE_SALE
from ..validation import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    coerce_int,
    coerce_price,
)
from .concurrency import lock_for_update, run_with_retry
from .context_service import Actor, resolve_actor, resolve_location_id
from .event_log_service import append_log_entry
from .location_service import require_location
from .permission_service import require_brand_access, require_permission
from .reference_service import new_batch_number, new_price_change_number, new_restock_number
from .stock_ledger_service import apply_delta, get_stock, set_stock
"""
Inventory Mutation Invariants (authoritative)

- Every stock or price change appends exactly the history entries listed
  below, in the same transaction. Stock and price events are never merged.
- Validation runs before any mutation; a failing bulk update changes
  nothing (no partial application).
- Stock never goes below zero through this module: absolute stock must be
  >= 0, transfers cannot take more than the source holds and external
  restock corrections cannot drive the target negative.
- last_restock_amount only moves on a strictly positive addition.

Entries written:
- update_stock:  RESTOCK at the location, event number REST-dddd
- update_price:  PRICE_CHANGE (global), event number PRC-XXXXX
- bulk_update, external restock:  RESTOCK at target (event number = PO)
- bulk_update, transfer:  RESTOCK at target + SALE at source (batch number)
- bulk_update, price differs:  PRICE_CHANGE tagged with the batch number
"""


RESTOCK_SOURCE = "restock"


@dataclass(frozen=True)
class BulkUpdateLine:
    product_id: str
    added_stock: int = 0
    new_price: Decimal | None = None


@dataclass
class BulkUpdateResult:
    batch_number: str
    source_location_id: str
    target_location_id: str
    entries: list[LogEntry] = field(default_factory=list)
    product_ids: list[str] = field(default_factory=list)

    @property
    def is_transfer(self) -> bool:
        return self.source_location_id != RESTOCK_SOURCE


def _load_product(product_id: str, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def _format_money(value) -> str:
    return f"${Decimal(value):.2f}"


def _price_change_text(old_price, new_price) -> str:
    return f"{_format_money(old_price)} -> {_format_money(new_price)}"


def update_stock(
    product_id: str,
    new_stock: int,
    *,
    location_id: str | None = None,
    actor: Actor | None = None,
) -> Product:
    """
    Set the absolute stock of a product at a location (single restock).

    added = new_stock - current stock at the location. A net decrease is
    still logged as a RESTOCK event but leaves last_restock_amount alone:
    it answers "how much was last added", not "what was the last change".
    """
    new_stock = coerce_int(new_stock, "new_stock")
    if new_stock < 0:
        raise ValidationError("new_stock must be >= 0")

    location = require_location(resolve_location_id(location_id))
    actor = resolve_actor(actor)
    require_permission(actor, "MANAGE_INVENTORY", resource=product_id)

    def _op():
        product = _load_product(product_id, lock=True)
        require_brand_access(actor, product.brand)
        added = set_stock(product, location.id, new_stock)

        append_log_entry(
            product,
            entry_type=LOG_TYPE_RESTOCK,
            event_number=new_restock_number(),
            change=f"Restock of {added} units at {location.name}",
            quantity=f"{added} {product.unit}",
            location_id=location.id,
            actor=actor,
        )
        if added > 0:
            product.last_restock_amount = added
        return product, added

    product, added = run_with_retry(_op)
    current_app.logger.info(
        "Stock of %s at %s set to %s (delta %s) by %s",
        product_id, location.id, new_stock, added, actor.user_id,
    )
    return product


def update_price(
    product_id: str,
    new_price,
    *,
    actor: Actor | None = None,
) -> Product:
    """Change a product's price; logs a global PRICE_CHANGE event."""
    new_price = coerce_price(new_price, "new_price")
    actor = resolve_actor(actor)
    require_permission(actor, "MANAGE_PRICES", resource=product_id)

    def _op():
        product = _load_product(product_id, lock=True)
        require_brand_access(actor, product.brand)
        old_price = Decimal(product.price)

        append_log_entry(
            product,
            entry_type=LOG_TYPE_PRICE_CHANGE,
            event_number=new_price_change_number(),
            change=_price_change_text(old_price, new_price),
            actor=actor,
        )
        product.price = new_price
        return product, old_price

    product, old_price = run_with_retry(_op)
    current_app.logger.info(
        "Price of %s changed %s -> %s by %s", product_id, old_price, new_price, actor.user_id,
    )
    return product


def _normalize_line(raw) -> BulkUpdateLine:
    if isinstance(raw, BulkUpdateLine):
        product_id, added, price = raw.product_id, raw.added_stock, raw.new_price
    elif isinstance(raw, dict):
        product_id = raw.get("product_id")
        added = raw.get("added_stock", 0)
        price = raw.get("new_price")
    else:
        raise ValidationError("Each update must be a BulkUpdateLine or a dict")

    if not product_id or not str(product_id).strip():
        raise ValidationError("product_id is required on every update")

    return BulkUpdateLine(
        product_id=str(product_id).strip(),
        added_stock=coerce_int(added if added is not None else 0, "added_stock"),
        new_price=coerce_price(price, "new_price") if price is not None else None,
    )


def _price_differs(product: Product, new_price: Decimal | None) -> bool:
    return new_price is not None and Decimal(product.price) != new_price


def validate_bulk_update(
    lines: list[BulkUpdateLine],
    *,
    target_location_id: str,
    source_location_id: str,
    purchase_order: str | None,
) -> dict[str, Product]:
    """
    Check every precondition of a bulk update without mutating anything.

    Returns the affected products keyed by id.

    Raises:
        ValidationError: missing purchase order, empty/duplicate/no-op
            batch, transfer to the same location, negative transfer amounts
        InsufficientStockError: transfer exceeds source stock, or a restock
            correction would take the target below zero
        NotFoundError: unknown product or location
    """
    if not lines:
        raise ValidationError("No updates supplied")

    seen: set[str] = set()
    for line in lines:
        if line.product_id in seen:
            raise ValidationError(f"Product {line.product_id} appears more than once in the batch")
        seen.add(line.product_id)

    require_location(target_location_id)

    is_transfer = source_location_id != RESTOCK_SOURCE
    if is_transfer:
        require_location(source_location_id)
        if source_location_id == target_location_id:
            raise ValidationError("Cannot transfer to the same location")
    elif not purchase_order or not str(purchase_order).strip():
        raise ValidationError("purchase_order is required for an external restock")

    products: dict[str, Product] = {}
    for line in lines:
        product = db.session.get(Product, line.product_id)
        if product is None:
            raise NotFoundError(f"Product {line.product_id} not found")
        products[line.product_id] = product

    if not any(
        line.added_stock != 0 or _price_differs(products[line.product_id], line.new_price)
        for line in lines
    ):
        raise ValidationError("No stock or price changes to apply")

    insufficient = []
    for line in lines:
        product = products[line.product_id]
        if is_transfer:
            if line.added_stock < 0:
                raise ValidationError(f"Transfer quantity for {line.product_id} must be positive")
            available = get_stock(product, source_location_id)
            if line.added_stock > available:
                insufficient.append({
                    "product_id": line.product_id,
                    "location_id": source_location_id,
                    "requested_quantity": line.added_stock,
                    "on_hand": available,
                })
        else:
            on_hand = get_stock(product, target_location_id)
            if on_hand + line.added_stock < 0:
                insufficient.append({
                    "product_id": line.product_id,
                    "location_id": target_location_id,
                    "requested_quantity": -line.added_stock,
                    "on_hand": on_hand,
                })

    if insufficient:
        raise InsufficientStockError(
            "Insufficient stock for bulk update",
            details={"items": insufficient},
        )

    return products


def bulk_update(
    updates,
    batch_number: str | None,
    source_location_id: str = RESTOCK_SOURCE,
    purchase_order: str | None = None,
    *,
    location_id: str | None = None,
    actor: Actor | None = None,
) -> BulkUpdateResult:
    """
    Apply stock and/or price changes to several products in one batch.

    source_location_id="restock" is an external purchase (purchase_order
    required); any other value is a location id and makes the batch an
    inter-location transfer into the acting (target) location.

    Products not listed in updates are left untouched; listed products
    without an effective change get no entries.
    """
    lines = [_normalize_line(raw) for raw in (updates or [])]
    target_id = resolve_location_id(location_id)
    actor = resolve_actor(actor)
    batch_number = str(batch_number or "").strip() or new_batch_number()
    if purchase_order is not None:
        purchase_order = str(purchase_order).strip() or None

    require_permission(actor, "MANAGE_INVENTORY", resource=batch_number)
    if any(line.new_price is not None for line in lines):
        require_permission(actor, "MANAGE_PRICES", resource=batch_number)

    validate_bulk_update(
        lines,
        target_location_id=target_id,
        source_location_id=source_location_id,
        purchase_order=purchase_order,
    )

    is_transfer = source_location_id != RESTOCK_SOURCE
    target: Location = require_location(target_id)
    source: Location | None = require_location(source_location_id) if is_transfer else None

    def _op():
        result = BulkUpdateResult(
            batch_number=batch_number,
            source_location_id=source_location_id,
            target_location_id=target.id,
        )
        for line in lines:
            product = _load_product(line.product_id, lock=True)
            require_brand_access(actor, product.brand)
            touched = False

            if line.added_stock != 0:
                quantity_text = f"{line.added_stock} {product.unit}"
                apply_delta(product, target.id, line.added_stock)

                if is_transfer:
                    change = f"Transfer of {line.added_stock} {product.unit} from {source.name} to {target.name}"
                else:
                    change = f"Restock of {line.added_stock} {product.unit} at {target.name} (PO {purchase_order})"

                result.entries.append(append_log_entry(
                    product,
                    entry_type=LOG_TYPE_RESTOCK,
                    event_number=batch_number if is_transfer else purchase_order,
                    change=change,
                    quantity=quantity_text,
                    location_id=target.id,
                    actor=actor,
                ))

                if is_transfer:
                    apply_delta(product, source.id, -line.added_stock)
                    # Units leaving the source are logged as SALE by convention
                    result.entries.append(append_log_entry(
                        product,
                        entry_type=LOG_TYPE_SALE,
                        event_number=batch_number,
                        change=f"Transfer of {line.added_stock} {product.unit} to {target.name}",
                        quantity=quantity_text,
                        location_id=source.id,
                        actor=actor,
                    ))

                if line.added_stock > 0:
                    product.last_restock_amount = line.added_stock
                touched = True

            if _price_differs(product, line.new_price):
                result.entries.append(append_log_entry(
                    product,
                    entry_type=LOG_TYPE_PRICE_CHANGE,
                    event_number=batch_number,
                    change=_price_change_text(product.price, line.new_price),
                    actor=actor,
                ))
                product.price = line.new_price
                touched = True

            if touched:
                result.product_ids.append(product.id)
        return result

    result = run_with_retry(_op)
    current_app.logger.info(
        "Bulk update %s (%s) applied to %d products, %d entries, by %s",
        batch_number,
        f"transfer from {source_location_id}" if is_transfer else f"restock PO {purchase_order}",
        len(result.product_ids),
        len(result.entries),
        actor.user_id,
    )
    return result


def transfer_stock(
    product_id: str,
    quantity: int,
    *,
    from_location_id: str,
    to_location_id: str | None = None,
    batch_number: str | None = None,
    actor: Actor | None = None,
) -> BulkUpdateResult:
    """Move units of one product between locations (single-line bulk transfer)."""
    if from_location_id == RESTOCK_SOURCE:
        raise ValidationError("from_location_id must be a location id")
    return bulk_update(
        [BulkUpdateLine(product_id=product_id, added_stock=quantity)],
        batch_number,
        source_location_id=from_location_id,
        location_id=to_location_id,
        actor=actor,
    )
