# Overview: Read-only derived views over products, stock and orders.

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import LogEntry, Order, Product
from ..models.catalog import PRODUCT_STATUS_ACTIVE
from ..models.orders import ORDER_STATUS_PENDING, ORDER_STATUS_REJECTED
from .location_service import require_location
from .stock_ledger_service import get_stock, get_total_stock


# Orders that have not been accepted yet, or never will be, earn nothing
NON_REVENUE_STATUSES = (ORDER_STATUS_PENDING, ORDER_STATUS_REJECTED)

CHART_NAME_MAX = 15
CHART_NAME_KEEP = 12


def _threshold(threshold: int | None) -> int:
    if threshold is not None:
        return int(threshold)
    return int(current_app.config.get("LOW_STOCK_THRESHOLD", 100))


def _brand_products(brand: str, *, active_only: bool = False) -> list[Product]:
    query = db.session.query(Product).filter(Product.brand == brand)
    if active_only:
        query = query.filter(Product.status == PRODUCT_STATUS_ACTIVE)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def _brand_orders_query(brand: str, location_id: str | None):
    query = db.session.query(Order).filter(Order.brand == brand)
    if location_id is not None:
        query = query.filter(Order.location_id == location_id)
    return query


def _stock_of(product: Product, location_id: str | None) -> int:
    if location_id is None:
        return get_total_stock(product)
    return get_stock(product, location_id)


def low_stock_count(
    brand: str,
    location_id: str | None = None,
    threshold: int | None = None,
    *,
    active_only: bool = False,
) -> int:
    """
    Products of the brand strictly below the threshold, whatever their status.

    With a location the stock at that site is compared; without one the
    total across all locations is. active_only=True skips archived and
    inactive products.
    """
    limit = _threshold(threshold)
    products = _brand_products(brand, active_only=active_only)
    return sum(1 for p in products if _stock_of(p, location_id) < limit)


def revenue(brand: str, location_id: str | None = None) -> Decimal:
    """Sum of order totals excluding PENDING and REJECTED orders."""
    total = (
        _brand_orders_query(brand, location_id)
        .filter(Order.status.notin_(NON_REVENUE_STATUSES))
        .with_entities(func.coalesce(func.sum(Order.total), 0))
        .scalar()
    )
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))


def order_count(brand: str, location_id: str | None = None) -> int:
    return _brand_orders_query(brand, location_id).count()


def gross_order_total(brand: str, location_id: str | None = None) -> Decimal:
    """Sum of every order total of the brand, whatever its status."""
    total = (
        _brand_orders_query(brand, location_id)
        .with_entities(func.coalesce(func.sum(Order.total), 0))
        .scalar()
    )
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))


def pending_count(brand: str, location_id: str | None = None) -> int:
    return (
        _brand_orders_query(brand, location_id)
        .filter(Order.status == ORDER_STATUS_PENDING)
        .count()
    )


def chart_label(name: str) -> str:
    if len(name) > CHART_NAME_MAX:
        return name[:CHART_NAME_KEEP] + "..."
    return name


def stock_chart_series(brand: str, location_id: str, *, active_only: bool = False) -> list[dict]:
    """Per-product current stock at the location next to the last restock amount."""
    return [
        {
            "product_id": p.id,
            "name": chart_label(p.name),
            "current": get_stock(p, location_id),
            "last_restock": p.last_restock_amount,
            "unit": p.unit,
        }
        for p in _brand_products(brand, active_only=active_only)
    ]


def dashboard_summary(brand: str, location_id: str) -> dict:
    location = require_location(location_id)
    return {
        "brand": brand,
        "location_id": location.id,
        "location_name": location.name,
        "revenue": float(revenue(brand, location.id)),
        "pending_orders": pending_count(brand, location.id),
        "low_stock_items": low_stock_count(brand, location.id),
        "stock_chart": stock_chart_series(brand, location.id),
    }


def brand_event_feed(brand: str, limit: int | None = None) -> list[dict]:
    """History entries of every product of the brand, newest first."""
    query = (
        db.session.query(LogEntry, Product.name)
        .join(Product, Product.id == LogEntry.product_id)
        .filter(Product.brand == brand)
        .order_by(LogEntry.date.desc(), LogEntry.product_id.asc(), LogEntry.sequence.desc())
    )
    if limit is not None:
        query = query.limit(int(limit))

    feed = []
    for entry, product_name in query.all():
        row = entry.to_dict()
        row["product_name"] = product_name
        feed.append(row)
    return feed


def insight_summary(brand: str, period: str = "weekly") -> dict:
    """
    Brand-wide summary handed to the insight provider.

    Sales count and revenue cover every order of the brand, pending and
    rejected included; low stock is measured on totals across every location.
    """
    return {
        "brand": brand,
        "period": period,
        "totalSales": order_count(brand),
        "revenue": float(gross_order_total(brand)),
        "lowStockItems": low_stock_count(brand),
    }
