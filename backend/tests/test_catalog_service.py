"""
Catalog tests: create, shallow update, archive and catalog-wide id uniqueness.
"""

import re
from decimal import Decimal

import pytest

from stockledger.models import Product
from stockledger.models.catalog import PRODUCT_STATUS_ACTIVE, PRODUCT_STATUS_ARCHIVED
from stockledger.models.ledger import LOG_TYPE_CATALOG_CREATE, LOG_TYPE_CATALOG_UPDATE
from stockledger.services.catalog_service import (
    archive_product,
    create_product,
    get_product,
    list_products,
    update_product,
)
from stockledger.services.inventory_service import update_stock
from stockledger.validation import ConflictError, NotFoundError, ValidationError

BRAND = "Finca Don Rafa"
OTHER_BRAND = "Yuteco"


class TestCreateProduct:
    def test_defaults(self, context):
        product = create_product({"id": "p9", "brand": BRAND, "name": "Geisha Lot"})

        assert product.status == PRODUCT_STATUS_ACTIVE
        assert product.unit == "pcs"
        assert product.price == Decimal("0.00")
        assert product.location_stocks == {}
        assert product.last_restock_amount == 0

        assert len(product.history) == 1
        entry = product.history[0]
        assert entry.type == LOG_TYPE_CATALOG_CREATE
        assert re.fullmatch(r"CAT-\d{3}", entry.event_number)
        assert entry.sequence == 1
        assert entry.location_id is None

    def test_duplicate_id_rejected_across_brands(self, coffee, db_session):
        count = db_session.query(Product).count()

        with pytest.raises(ConflictError):
            create_product({"id": "p1", "brand": OTHER_BRAND, "name": "Jute Sack"})

        assert db_session.query(Product).count() == count
        assert get_product("p1").brand == BRAND

    def test_missing_required_fields(self, context):
        with pytest.raises(ValidationError, match="name"):
            create_product({"id": "p9", "brand": BRAND})

    def test_unknown_brand(self, context):
        with pytest.raises(ValidationError):
            create_product({"id": "p9", "brand": "Acme", "name": "Widget"})

    def test_protected_fields_rejected(self, context):
        with pytest.raises(ValidationError, match="not allowed"):
            create_product({"id": "p9", "brand": BRAND, "name": "X", "last_restock_amount": 50})

    def test_negative_price_rejected(self, context):
        with pytest.raises(ValidationError):
            create_product({"id": "p9", "brand": BRAND, "name": "X", "price": "-1"})


class TestUpdateProduct:
    def test_shallow_merge(self, coffee, warehouse):
        before = len(coffee.history)

        update_product("p1", {"name": "Arabica Green Coffee AA", "observations": "Screen 18"})

        assert coffee.name == "Arabica Green Coffee AA"
        assert coffee.observations == "Screen 18"
        assert coffee.unit == "kg"
        assert coffee.price == Decimal("12.50")
        assert coffee.location_stocks == {warehouse.id: 500}
        assert len(coffee.history) == before + 1
        assert coffee.history[-1].type == LOG_TYPE_CATALOG_UPDATE
        assert "name" in coffee.history[-1].change

    def test_history_not_overwritable(self, coffee):
        with pytest.raises(ValidationError):
            update_product("p1", {"history": []})

    def test_unknown_product(self, context):
        with pytest.raises(NotFoundError):
            update_product("ghost", {"name": "Nope"})

    def test_invalid_status(self, coffee):
        with pytest.raises(ValidationError):
            update_product("p1", {"status": "GONE"})


class TestArchiveAndList:
    def test_archive_keeps_history_and_stock(self, coffee, warehouse):
        before = len(coffee.history)

        archive_product("p1")

        assert coffee.status == PRODUCT_STATUS_ARCHIVED
        assert len(coffee.history) == before + 1
        assert coffee.location_stocks == {warehouse.id: 500}

    def test_list_filters(self, make_product):
        make_product("p1")
        make_product("p2", name="Roasted Honey Process")
        make_product("p3", brand=OTHER_BRAND, name="Standard Jute Bag 60kg")
        archive_product("p2")

        assert [p.id for p in list_products(BRAND)] == ["p1"]
        assert [p.id for p in list_products(BRAND, include_inactive=True)] == ["p1", "p2"]
        assert len(list_products(include_inactive=True)) == 3

    def test_products_of_other_brands_can_be_restocked_anywhere(self, make_product, plant):
        make_product("p3", brand=OTHER_BRAND, name="Standard Jute Bag 60kg", unit="pcs")
        product = update_stock("p3", 2000, location_id=plant.id)
        assert product.location_stocks == {plant.id: 2000}
