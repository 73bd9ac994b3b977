from app.services.filters import DateWindow
from app.services.production import calculate_production_summary

from factories import batch, movement, product

PRODUCTS = [product("p1", "bread"), product("p2", "Apple pie")]


def test_net_outflow_and_theoretical_rest():
    rows = calculate_production_summary(
        [batch(100)],
        [
            movement("sale", 60),
            movement("return", 10),
            movement("bonus", 5),
        ],
        PRODUCTS,
    )
    assert len(rows) == 1
    row = rows[0]
    assert row.id == "2024-05-01-p1"
    assert row.produced_qty == 100
    assert row.net_outflow_qty == 55
    assert row.theoretical_rest_qty == 45


def test_batches_on_same_day_are_summed():
    rows = calculate_production_summary([batch(30, bonus_pool_qty=2), batch(20, bonus_pool_qty=3)], [], PRODUCTS)
    assert rows[0].produced_qty == 50
    assert rows[0].bonus_pool_qty == 5


def test_movements_without_production_are_dropped():
    rows = calculate_production_summary(
        [batch(10)],
        [movement("sale", 3, date="2024-05-02"), movement("sale", 4, product_id="p2")],
        PRODUCTS,
    )
    assert len(rows) == 1
    assert rows[0].sales_qty == 0


def test_empty_when_no_batch_in_window():
    rows = calculate_production_summary(
        [batch(10, date="2024-04-01")],
        [movement("sale", 3)],
        PRODUCTS,
        window=DateWindow.of("2024-05-01", "2024-05-31"),
    )
    assert rows == []


def test_sorted_by_date_desc_then_product_name():
    rows = calculate_production_summary(
        [
            batch(1, date="2024-05-01", product_id="p1"),
            batch(1, date="2024-05-02", product_id="p1"),
            batch(1, date="2024-05-02", product_id="p2"),
        ],
        [],
        PRODUCTS,
    )
    assert [r.id for r in rows] == ["2024-05-02-p2", "2024-05-02-p1", "2024-05-01-p1"]


def test_unknown_product_placeholder():
    rows = calculate_production_summary([batch(1, product_id="px")], [], PRODUCTS)
    assert rows[0].product_name == "Unknown product"
