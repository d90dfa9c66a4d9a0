"""
Derived view tests: low stock, revenue, pending orders, chart series and
the brand event feed.
"""

from decimal import Decimal

import pytest

from stockledger.models.ledger import LOG_TYPE_CATALOG_CREATE, LOG_TYPE_CATALOG_UPDATE
from stockledger.services.catalog_service import archive_product
from stockledger.services.order_service import confirm_order, create_order, reject_order
from stockledger.services.reporting_service import (
    brand_event_feed,
    chart_label,
    dashboard_summary,
    insight_summary,
    low_stock_count,
    pending_count,
    revenue,
    stock_chart_series,
)

BRAND = "Finca Don Rafa"


@pytest.fixture
def catalog(make_product, warehouse, plant):
    """p1: 500 at the warehouse; p2: 50 at the warehouse, 90 at the plant; p3 archived."""
    make_product("p1", stock={warehouse.id: 500})
    make_product("p2", name="Roasted Honey Process", unit="bag", price="25.00",
                 stock={warehouse.id: 50, plant.id: 90})
    make_product("p3", name="Peaberry Micro Lot", stock={})
    archive_product("p3")
    make_product("p4", brand="Yuteco", name="Standard Jute Bag 60kg", unit="pcs", stock={})


@pytest.fixture
def orders(catalog):
    """One order per outcome: pending, confirmed (625.00), rejected."""
    pending = create_order(client_name="A", items=[{"product_id": "p1", "quantity": 1}])
    confirmed = create_order(client_name="B", items=[{"product_id": "p1", "quantity": 50}])
    rejected = create_order(client_name="C", items=[{"product_id": "p2", "quantity": 2}])
    confirm_order(confirmed.id)
    reject_order(rejected.id)
    return pending, confirmed, rejected


class TestLowStock:
    def test_per_location(self, catalog, warehouse, plant):
        # p3 is archived with no stock and still counts
        assert low_stock_count(BRAND, warehouse.id) == 2
        assert low_stock_count(BRAND, plant.id) == 3

    def test_summed_across_locations(self, catalog):
        # p2 totals 140, so only the empty p3 is low brand-wide
        assert low_stock_count(BRAND) == 1

    def test_threshold_override(self, catalog, warehouse):
        assert low_stock_count(BRAND, warehouse.id, threshold=600) == 3
        assert low_stock_count(BRAND, warehouse.id, threshold=50) == 1

    def test_active_only_skips_archived(self, catalog, warehouse, plant):
        assert low_stock_count(BRAND, warehouse.id, active_only=True) == 1
        assert low_stock_count(BRAND, plant.id, active_only=True) == 2
        assert low_stock_count(BRAND, active_only=True) == 0

    def test_archived_product_with_low_stock(self, make_product, warehouse):
        make_product("p1", stock={warehouse.id: 10})
        make_product("p2", name="Roasted Honey Process", stock={warehouse.id: 10})
        archive_product("p2")

        assert low_stock_count(BRAND, warehouse.id) == 2
        assert [row["product_id"] for row in stock_chart_series(BRAND, warehouse.id)] == ["p1", "p2"]


class TestOrderViews:
    def test_revenue_excludes_pending_and_rejected(self, orders, warehouse, plant):
        assert revenue(BRAND) == Decimal("625.00")
        assert revenue(BRAND, warehouse.id) == Decimal("625.00")
        assert revenue(BRAND, plant.id) == Decimal("0.00")
        assert revenue("Yuteco") == Decimal("0.00")

    def test_pending_count(self, orders, warehouse):
        assert pending_count(BRAND) == 1
        assert pending_count(BRAND, warehouse.id) == 1
        assert pending_count("Ecotact") == 0


class TestChartSeries:
    @pytest.mark.parametrize("name,label", [
        ("Arabica Green Coffee", "Arabica Gree..."),
        ("Vacuum Pack High-Barrier", "Vacuum Pack ..."),
        ("Roasted Honey", "Roasted Honey"),
        ("Exactly15Chars!", "Exactly15Chars!"),
    ])
    def test_chart_label(self, name, label):
        assert chart_label(name) == label

    def test_series_pairs_current_and_last_restock(self, catalog, warehouse, plant):
        series = {row["product_id"]: row for row in stock_chart_series(BRAND, warehouse.id)}

        assert set(series) == {"p1", "p2", "p3"}
        assert series["p3"]["current"] == 0
        assert series["p1"]["current"] == 500
        assert series["p1"]["last_restock"] == 500
        assert series["p2"]["current"] == 50
        assert series["p2"]["last_restock"] == 90
        assert series["p2"]["unit"] == "bag"

    def test_series_active_only(self, catalog, warehouse):
        series = stock_chart_series(BRAND, warehouse.id, active_only=True)
        assert [row["product_id"] for row in series] == ["p1", "p2"]

    def test_dashboard_summary(self, orders, warehouse):
        summary = dashboard_summary(BRAND, warehouse.id)

        assert summary["location_name"] == "Main Warehouse"
        assert summary["revenue"] == 625.0
        assert summary["pending_orders"] == 1
        assert summary["low_stock_items"] == 2
        assert len(summary["stock_chart"]) == 3


class TestEventFeed:
    def test_newest_first_and_brand_scoped(self, catalog):
        feed = brand_event_feed(BRAND)

        assert {row["product_id"] for row in feed} == {"p1", "p2", "p3"}
        dates = [row["date"] for row in feed]
        assert dates == sorted(dates, reverse=True)
        assert feed[-1]["type"] == LOG_TYPE_CATALOG_CREATE
        assert all(row["product_name"] for row in feed)

    def test_limit(self, catalog):
        # p3 was created and then archived after every other brand entry
        feed = brand_event_feed(BRAND, limit=2)
        assert [(row["product_id"], row["type"]) for row in feed] == [
            ("p3", LOG_TYPE_CATALOG_UPDATE),
            ("p3", LOG_TYPE_CATALOG_CREATE),
        ]


class TestInsightSummary:
    def test_summary_counts_every_order(self, orders):
        # pending 12.50 + confirmed 625.00 + rejected 50.00
        summary = insight_summary(BRAND, "monthly")

        assert summary == {
            "brand": BRAND,
            "period": "monthly",
            "totalSales": 3,
            "revenue": 687.5,
            "lowStockItems": 1,
        }

    def test_summary_without_orders(self, catalog):
        summary = insight_summary("Yuteco")

        assert summary["totalSales"] == 0
        assert summary["revenue"] == 0.0
        assert summary["lowStockItems"] == 1
