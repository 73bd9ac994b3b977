import datetime as dt

import pytest

from app.services.filters import DateWindow
from app.services.financials import (
    NO_STORE_NAME,
    build_financial_report,
    build_revenue_report,
    calculate_movement_financials,
    calculate_plan_progress,
    movement_financials,
)

from factories import district, movement, plan, product, store

DISTRICTS = [district("d1", "North"), district("d2", "South")]
STORES = [store("s1", "Alpha", "d1"), store("s2", "Beta", "d2")]
PRODUCTS = [product("p1", "Bread", cost_price=50, sale_price=200)]


def test_bonus_costs_without_revenue():
    r = movement_financials(movement("bonus", 3, 200), cost_price=50)
    assert r.amount == 0
    assert r.cost == 150
    assert r.profit == -150


@pytest.mark.parametrize(
    "op, amount, cost",
    [
        ("sale", 400, 100),
        ("return", -400, -100),
        ("exchange", 0, 100),
        ("writeoff", 0, 100),
        ("load", 0, 0),
        ("transfer_in", 0, 0),
        ("transfer_out", 0, 0),
    ],
)
def test_movement_financials_table(op, amount, cost):
    r = movement_financials(movement(op, 2, 200), cost_price=50)
    assert (r.amount, r.cost) == (amount, cost)


def test_unknown_product_has_zero_cost():
    (r,) = calculate_movement_financials([movement("sale", 1, 10, product_id="gone")], PRODUCTS)
    assert r.cost == 0
    assert r.profit == 10


def test_financial_report_rollups():
    report = build_financial_report(
        [
            movement("sale", 2, 200, date="2024-05-01"),
            movement("sale", 1, 200, date="2024-05-01"),
            movement("sale", 1, 200, date="2024-05-02"),
            movement("return", 1, 200, date="2024-05-02"),
            movement("bonus", 1, 200, date="2024-05-02"),
            movement("sale", 5, 200, district_id="d2", store_id="s2", date="2024-05-03"),
            movement("sale", 1, 200, district_id="d2", store_id=None, date="2024-05-03"),
        ],
        PRODUCTS,
        DISTRICTS,
        STORES,
    )
    kpis = report.kpis
    assert kpis.revenue == 200 * (2 + 1 + 1 - 1 + 5 + 1)
    assert kpis.cost == 50 * (2 + 1 + 1 - 1 + 1 + 5 + 1)
    assert kpis.profit == kpis.revenue - kpis.cost
    assert (kpis.ops.sales, kpis.ops.returns, kpis.ops.bonuses, kpis.ops.exchanges) == (5, 1, 1, 0)

    by_district = {d.district_id: d for d in report.districts}
    north = by_district["d1"]
    assert north.sales_qty == 4
    assert north.returns_qty == 1
    assert north.bonuses_qty == 1
    assert north.unique_sales_days == 2
    # South has the higher profit
    assert [d.district_id for d in report.districts] == ["d2", "d1"]

    stores = {(s.district_id, s.store_id): s for s in report.stores}
    assert stores[("d1", "s1")].sales_count == 3
    assert stores[("d1", "s1")].sales_qty == 4
    assert stores[("d2", None)].store_name == NO_STORE_NAME
    assert stores[("d2", None)].total_revenue == 200

    assert [p.date for p in report.daily] == [
        dt.date(2024, 5, 1),
        dt.date(2024, 5, 2),
        dt.date(2024, 5, 3),
    ]
    assert report.daily[0].revenue == 600


def test_financial_report_filters():
    movements = [
        movement("sale", 1, 200, date="2024-05-01"),
        movement("sale", 1, 200, date="2024-05-02"),
        movement("return", 1, 200, date="2024-05-02"),
        movement("sale", 1, 200, date="2024-05-03"),
    ]
    report = build_financial_report(
        movements,
        PRODUCTS,
        DISTRICTS,
        STORES,
        window=DateWindow.of("2024-05-02", "2024-05-02"),
        operation_type="sale",
    )
    assert report.kpis.revenue == 200
    assert report.kpis.ops.sales == 1
    assert report.kpis.ops.returns == 0

    report = build_financial_report(movements, PRODUCTS, DISTRICTS, STORES, district_id="d2")
    assert report.kpis.revenue == 0
    assert report.stores == []


def test_revenue_mode_rates():
    report = build_revenue_report(
        [
            movement("sale", 100, 10),
            movement("return", 5, 10),
            movement("exchange", 5, 10),
            movement("bonus", 4, 10),
            movement("sale", 1, 10, store_id=None),
        ],
        DISTRICTS,
        STORES,
    )
    (north,) = report.districts
    assert north.revenue == 1000 - 50 + 10
    assert north.profit == north.revenue
    assert north.issue_qty == 10
    assert north.return_rate == pytest.approx(10 / 101 * 100)

    stores = {s.id: s for s in report.stores}
    alpha = stores["d1-s1"]
    assert alpha.sub_label == "North"
    assert alpha.return_rate == pytest.approx(10.0)
    assert alpha.bonus_share == pytest.approx(4.0)
    storeless = stores["d1-unknown"]
    assert storeless.name == NO_STORE_NAME
    assert storeless.return_rate == 0


def test_revenue_mode_without_sales_has_zero_rates():
    report = build_revenue_report([movement("return", 2, 10)], DISTRICTS, STORES)
    row = report.districts[0]
    assert row.revenue == -20
    assert row.return_rate == 0
    assert row.bonus_share == 0


def test_plan_progress():
    rows = calculate_plan_progress(
        [plan(1000), plan(0, district_id="d2")],
        [
            movement("sale", 3, 200, date="2024-05-10"),
            movement("return", 1, 200, date="2024-05-11"),
            movement("sale", 10, 200, date="2024-06-01"),
            movement("sale", 10, 200, district_id="d2", store_id="s2"),
        ],
        PRODUCTS,
        DISTRICTS,
    )
    first, second = rows
    assert first.actual_revenue == 400
    assert first.completion_pct == pytest.approx(40.0)
    assert first.remaining == 600
    assert second.completion_pct == 0
    assert second.remaining == 0
    assert second.district_name == "South"
