# Overview: Demo catalog, locations and order for a fresh in-memory database.

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Order, OrderItem, Product, ProductLocationStock
from ..models.catalog import PRODUCT_STATUS_ACTIVE
from ..models.ledger import LOG_TYPE_CATALOG_CREATE
from ..models.orders import ORDER_STATUS_PENDING
from ..permissions import ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_MANAGER
from ..time_utils import utcnow
from .concurrency import run_atomic
from .context_service import Actor
from .event_log_service import append_log_entry
from .location_service import ensure_location
from .reference_service import new_catalog_number


DEMO_USERS = (
    {"id": "u1", "name": "Roberto Don Rafa", "role": ROLE_ADMIN,
     "brands": ("Finca Don Rafa", "Yuteco", "Ecotact")},
    {"id": "u2", "name": "Ana Manager", "role": ROLE_MANAGER, "brands": ("Yuteco", "Finca Don Rafa")},
    {"id": "u3", "name": "Carlos Employee", "role": ROLE_EMPLOYEE, "brands": ("Ecotact",)},
)

DEMO_LOCATIONS = (
    {"location_id": "loc-1", "name": "Main Warehouse", "address": None},
    {"location_id": "loc-2", "name": "Roasting Plant", "address": None},
)

# (id, brand, name, price, unit, category, last_restock_amount, stock at loc-1)
DEMO_PRODUCTS = (
    ("p1", "Finca Don Rafa", "Arabica Green Coffee", "12.50", "kg", "Raw Materials", 1000, 500),
    ("p2", "Finca Don Rafa", "Roasted Honey Process", "25.00", "bag", "Finished Goods", 200, 120),
    ("p3", "Yuteco", "Standard Jute Bag 60kg", "4.50", "pcs", "Packaging", 5000, 2000),
    ("p4", "Yuteco", "Custom Printed Bag", "6.20", "pcs", "Packaging", 1000, 800),
    ("p5", "Ecotact", "Hermetic Liner 70L", "8.50", "pcs", "Storage", 2000, 1500),
    ("p6", "Ecotact", "Vacuum Pack High-Barrier", "15.00", "pcs", "Storage", 500, 450),
)


def demo_actor(user_id: str = "u1") -> Actor:
    for user in DEMO_USERS:
        if user["id"] == user_id:
            return Actor(
                user_id=user["id"],
                user_name=user["name"],
                role=user["role"],
                brands=user["brands"],
            )
    raise KeyError(user_id)


def seed_demo_data() -> bool:
    """
    Load the demo data set once. Returns False when products already exist.

    Initial stock is written directly to the ledger rows; each product gets
    a single CATALOG_CREATE entry.
    """
    if db.session.query(Product.id).first() is not None:
        return False

    admin = demo_actor("u1")
    employee = demo_actor("u3")
    first_location = DEMO_LOCATIONS[0]["location_id"]

    def _op():
        for loc in DEMO_LOCATIONS:
            ensure_location(**loc)

        for pid, brand, name, price, unit, category, last_restock, stock in DEMO_PRODUCTS:
            product = Product(
                id=pid,
                brand=brand,
                name=name,
                price=Decimal(price),
                unit=unit,
                category=category,
                status=PRODUCT_STATUS_ACTIVE,
                last_restock_amount=last_restock,
            )
            product.stock_rows.append(ProductLocationStock(location_id=first_location, quantity=stock))
            db.session.add(product)
            db.session.flush()
            append_log_entry(
                product,
                entry_type=LOG_TYPE_CATALOG_CREATE,
                event_number=new_catalog_number(),
                change=f"Created product {name} ({brand})",
                actor=admin,
            )

        now = utcnow()
        order = Order(
            id="ORD-001",
            brand="Finca Don Rafa",
            location_id=first_location,
            creator_id=employee.user_id,
            creator_name=employee.user_name,
            client_name="Starbucks MX",
            client_email="procurement@starbucks.com.mx",
            status=ORDER_STATUS_PENDING,
            total=Decimal("1250.00"),
            created_at=now,
            updated_at=now,
        )
        order.items.append(OrderItem(
            position=1,
            product_id="p1",
            product_name="Arabica Green Coffee",
            quantity=100,
            unit_price=Decimal("12.50"),
        ))
        db.session.add(order)

    run_atomic(_op)
    current_app.logger.info(
        "Seeded %d locations, %d products and 1 order", len(DEMO_LOCATIONS), len(DEMO_PRODUCTS),
    )
    return True
