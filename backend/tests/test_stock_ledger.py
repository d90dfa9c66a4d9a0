"""
Stock ledger tests.

The ledger only maintains the per-location quantity map: no validation and
no history entries.
"""

from stockledger.services.stock_ledger_service import (
    apply_delta,
    get_location_stocks,
    get_stock,
    get_total_stock,
    set_stock,
)


class TestReads:
    def test_unrecorded_location_reads_zero(self, coffee, plant):
        assert get_stock(coffee, plant.id) == 0
        assert get_stock(coffee, "nowhere") == 0

    def test_total_sums_all_locations(self, coffee, warehouse, plant):
        set_stock(coffee, plant.id, 80)
        assert get_total_stock(coffee) == 580
        assert get_location_stocks(coffee) == {warehouse.id: 500, plant.id: 80}


class TestWrites:
    def test_set_stock_returns_delta(self, coffee, warehouse, plant):
        assert set_stock(coffee, warehouse.id, 450) == -50
        assert set_stock(coffee, plant.id, 30) == 30
        assert get_stock(coffee, warehouse.id) == 450
        assert get_stock(coffee, plant.id) == 30

    def test_apply_delta_returns_new_quantity(self, coffee, warehouse):
        assert apply_delta(coffee, warehouse.id, 25) == 525
        assert apply_delta(coffee, warehouse.id, -600) == -75

    def test_writes_do_not_touch_history(self, coffee, warehouse):
        before = len(coffee.history)
        set_stock(coffee, warehouse.id, 10)
        apply_delta(coffee, warehouse.id, 5)
        assert len(coffee.history) == before
