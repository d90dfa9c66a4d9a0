"""
Order Service - order lifecycle and fulfillment

WHY: An order is a document with a lifecycle; stock moves only when it is
confirmed. Confirmation deducts every line at the order's own location
(fixed at creation) and records one SALE entry per product.

LIFECYCLE:
PENDING -> CONFIRMED | REJECTED
CONFIRMED -> PAID -> IN PRODUCTION -> SHIPPED/DELIVERED
REJECTED and SHIPPED/DELIVERED are terminal.

Re-applying the current status is a no-op, so confirming a CONFIRMED order
never deducts twice.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Order, OrderItem, Product
from ..models.ledger import LOG_TYPE_SALE
from ..models.orders import (
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_PAID,
    ORDER_STATUS_PENDING,
    ORDER_STATUS_PRODUCTION,
    ORDER_STATUS_REJECTED,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUSES,
)
from ..time_utils import utcnow
from ..validation import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    coerce_int,
    coerce_price,
)
from .concurrency import lock_for_update, run_with_retry
from .context_service import Actor, resolve_actor, resolve_brand, resolve_location_id
from .event_log_service import append_log_entry
from .location_service import require_location
from .permission_service import require_brand_access, require_permission
from .reference_service import new_order_id
from .stock_ledger_service import apply_delta, get_stock


ALLOWED_TRANSITIONS = {
    ORDER_STATUS_PENDING: {ORDER_STATUS_CONFIRMED, ORDER_STATUS_REJECTED},
    ORDER_STATUS_CONFIRMED: {ORDER_STATUS_PAID},
    ORDER_STATUS_PAID: {ORDER_STATUS_PRODUCTION},
    ORDER_STATUS_PRODUCTION: {ORDER_STATUS_SHIPPED},
    ORDER_STATUS_REJECTED: set(),
    ORDER_STATUS_SHIPPED: set(),
}

# ORD-ddd has 900 values; give up well before the space is exhausted
MAX_ORDER_ID_ATTEMPTS = 50


class OrderStatusError(ValidationError):
    """Raised for an illegal status transition."""


def _allocate_order_id() -> str:
    for _ in range(MAX_ORDER_ID_ATTEMPTS):
        candidate = new_order_id()
        if db.session.get(Order, candidate) is None:
            return candidate
    raise ValidationError("Could not allocate a free order id")


def _build_items(brand: str, items) -> list[OrderItem]:
    if not items:
        raise ValidationError("Order must contain at least one item")

    built = []
    for position, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError("Each order item must be a dict")

        product_id = raw.get("product_id")
        if not product_id:
            raise ValidationError(f"Item {position}: product_id is required")

        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        if product.brand != brand:
            raise ValidationError(f"Item {position}: product {product_id} does not belong to {brand}")

        quantity = coerce_int(raw.get("quantity"), "quantity")
        if quantity <= 0:
            raise ValidationError(f"Item {position}: quantity must be > 0")

        unit_price = raw.get("unit_price")
        unit_price = coerce_price(unit_price if unit_price is not None else product.price, "unit_price")

        built.append(OrderItem(
            position=position,
            product_id=product.id,
            product_name=raw.get("product_name") or product.name,
            quantity=quantity,
            unit_price=unit_price,
        ))
    return built


def create_order(
    *,
    client_name: str,
    client_email: str | None = None,
    items,
    brand: str | None = None,
    location_id: str | None = None,
    actor: Actor | None = None,
) -> Order:
    """
    Create a PENDING order bound to the current brand and location.

    total = sum(quantity * unit_price); unit_price/product_name default to
    the product's current values.
    """
    if not client_name or not str(client_name).strip():
        raise ValidationError("client_name is required")

    brand = resolve_brand(brand)
    location = require_location(resolve_location_id(location_id))
    actor = resolve_actor(actor)
    require_permission(actor, "CREATE_ORDER", resource=brand)
    require_brand_access(actor, brand)
    order_items = _build_items(brand, items)

    def _op():
        now = utcnow()
        order = Order(
            id=_allocate_order_id(),
            brand=brand,
            location_id=location.id,
            creator_id=actor.user_id,
            creator_name=actor.user_name,
            client_name=str(client_name).strip(),
            client_email=(client_email or "").strip() or None,
            status=ORDER_STATUS_PENDING,
            total=sum((item.unit_price * item.quantity for item in order_items), Decimal("0.00")),
            created_at=now,
            updated_at=now,
        )
        order.items.extend(order_items)
        db.session.add(order)
        db.session.flush()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s created for %s at %s by %s", order.id, brand, location.id, actor.user_id,
    )
    return order


def get_order(order_id: str) -> Order | None:
    return db.session.get(Order, order_id)


def require_order(order_id: str) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def list_orders(
    brand: str | None = None,
    location_id: str | None = None,
    status: str | None = None,
) -> list[Order]:
    query = db.session.query(Order)
    if brand is not None:
        query = query.filter(Order.brand == brand)
    if location_id is not None:
        query = query.filter(Order.location_id == location_id)
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def _quantities_by_product(order: Order) -> dict[str, int]:
    totals: dict[str, int] = {}
    for item in order.items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def _check_fulfillment_stock(order: Order, totals: dict[str, int]) -> None:
    insufficient = []
    for product_id, qty in totals.items():
        product = db.session.get(Product, product_id)
        on_hand = get_stock(product, order.location_id)
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "location_id": order.location_id,
                "requested_quantity": qty,
                "on_hand": on_hand,
            })

    if not insufficient:
        return

    if current_app.config.get("ALLOW_NEGATIVE_STOCK"):
        current_app.logger.warning(
            "Order %s confirmed with insufficient stock at %s: %s",
            order.id, order.location_id, insufficient,
        )
        return

    raise InsufficientStockError(
        f"Insufficient stock to confirm order {order.id}",
        details={"items": insufficient},
    )


def _fulfill_order(order: Order, actor: Actor) -> None:
    """Deduct every line at the order's location and log one SALE per product."""
    totals = _quantities_by_product(order)
    _check_fulfillment_stock(order, totals)

    for product_id, qty in totals.items():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        apply_delta(product, order.location_id, -qty)
        append_log_entry(
            product,
            entry_type=LOG_TYPE_SALE,
            event_number=order.id,
            change=f"Sold {qty} {product.unit}",
            quantity=f"{qty} {product.unit}",
            location_id=order.location_id,
            actor=actor,
        )


def update_order_status(
    order_id: str,
    new_status: str,
    *,
    actor: Actor | None = None,
    manager_note: str | None = None,
) -> Order:
    """
    Move an order to new_status.

    Only the edge into CONFIRMED has ledger side effects. Setting the
    current status again returns the order unchanged.

    Raises:
        NotFoundError: unknown order
        OrderStatusError: illegal transition
        InsufficientStockError: confirmation would drive stock negative
            (unless ALLOW_NEGATIVE_STOCK)
        PermissionDeniedError: actor lacks APPROVE_ORDER or the order's brand
    """
    if new_status not in ORDER_STATUSES:
        raise OrderStatusError(f"Unknown order status {new_status!r}")
    actor = resolve_actor(actor)
    require_permission(actor, "APPROVE_ORDER", resource=order_id)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        require_brand_access(actor, order.brand)

        previous = order.status
        if previous == new_status:
            return order, previous

        if new_status not in ALLOWED_TRANSITIONS.get(previous, set()):
            raise OrderStatusError(f"Cannot move order {order_id} from {previous} to {new_status}")

        if new_status == ORDER_STATUS_CONFIRMED:
            _fulfill_order(order, actor)

        order.status = new_status
        order.updated_at = utcnow()
        if manager_note is not None:
            order.manager_note = manager_note.strip() or None
        return order, previous

    order, previous = run_with_retry(_op)
    if previous != new_status:
        current_app.logger.info(
            "Order %s moved %s -> %s by %s", order_id, previous, new_status, actor.user_id,
        )
    return order


def confirm_order(order_id: str, *, actor: Actor | None = None, manager_note: str | None = None) -> Order:
    return update_order_status(order_id, ORDER_STATUS_CONFIRMED, actor=actor, manager_note=manager_note)


def reject_order(order_id: str, *, actor: Actor | None = None, manager_note: str | None = None) -> Order:
    return update_order_status(order_id, ORDER_STATUS_REJECTED, actor=actor, manager_note=manager_note)
