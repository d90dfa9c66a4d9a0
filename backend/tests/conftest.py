"""
Pytest fixtures for stockledger tests.

Provides the application, a clean in-memory database per test, demo
locations, an acting context and product factories.
"""

import pytest

from stockledger import create_app
from stockledger.config import TestConfig
from stockledger.extensions import db
from stockledger.services import catalog_service, inventory_service
from stockledger.permissions import ROLE_MANAGER
from stockledger.services.context_service import Actor, set_acting_context
from stockledger.services.location_service import ensure_location
from stockledger.services.reference_service import seed_references


BRAND = "Finca Don Rafa"
OTHER_BRAND = "Yuteco"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        seed_references(1234)

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def warehouse(db_session):
    """Main warehouse location."""
    location = ensure_location(location_id="loc-1", name="Main Warehouse")
    db_session.commit()
    return location


@pytest.fixture(scope='function')
def plant(db_session):
    """Second location, used as transfer source/target."""
    location = ensure_location(location_id="loc-2", name="Roasting Plant")
    db_session.commit()
    return location


@pytest.fixture(scope='function')
def actor():
    """Manager assigned to Finca Don Rafa and Yuteco."""
    return Actor(user_id="u2", user_name="Ana Manager", role=ROLE_MANAGER, brands=(BRAND, OTHER_BRAND))


@pytest.fixture(scope='function')
def context(db_session, warehouse, plant, actor):
    """Ana Manager acting for Finca Don Rafa at the main warehouse."""
    return set_acting_context(actor=actor, brand=BRAND, location_id=warehouse.id)


@pytest.fixture(scope='function')
def make_product(context):
    """
    Factory: create an active product and optionally stock it.

    stock is a {location_id: quantity} map applied through update_stock, so
    each stocked location adds one RESTOCK entry after CATALOG_CREATE.
    """
    def _make(product_id="p1", *, brand=BRAND, name="Arabica Green Coffee",
              price="12.50", unit="kg", stock=None):
        catalog_service.create_product({
            "id": product_id,
            "brand": brand,
            "name": name,
            "price": price,
            "unit": unit,
            "category": "Raw Materials",
        })
        for location_id, quantity in (stock or {}).items():
            inventory_service.update_stock(product_id, quantity, location_id=location_id)
        return catalog_service.require_product(product_id)

    return _make


@pytest.fixture(scope='function')
def coffee(make_product, warehouse):
    """p1 with 500 kg at the main warehouse."""
    return make_product("p1", stock={warehouse.id: 500})
