"""
District / store financial reporting.

Two report modes answer different questions:

* **profit** – revenue, cost of goods and profit per movement, rolled up per
  district and per store.  Exchanges, bonuses and write-offs carry cost but
  no revenue.
* **revenue** – no cost data; revenue from sales minus returns, plus issue
  rates (returns + exchanges per sale) and bonus share for spotting problem
  stores.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from app.schemas import (
    ApiModel,
    DistrictRead,
    MovementRead,
    ProductRead,
    RevenuePlanRead,
    StoreRead,
)
from app.services.filters import DateWindow, as_day, matches, pct

logger = logging.getLogger(__name__)

NO_STORE_NAME = "No store (district level)"
UNKNOWN_DISTRICT = "Unknown district"

_QTY_FIELD = {
    "sale": "sales_qty",
    "return": "returns_qty",
    "exchange": "exchanges_qty",
    "bonus": "bonuses_qty",
}
_COUNT_FIELD = {
    "sale": "sales_count",
    "return": "returns_count",
    "exchange": "exchanges_count",
    "bonus": "bonuses_count",
}


# --------------------------------------------------------------------------- #
# Per-movement figures                                                        #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class MovementFinancials:
    movement: MovementRead
    amount: float
    cost: float

    @property
    def profit(self) -> float:
        return self.amount - self.cost


def movement_financials(m: MovementRead, cost_price: float) -> MovementFinancials:
    base_amount = m.quantity * m.unit_price
    base_cost = m.quantity * cost_price

    if m.operation_type == "sale":
        return MovementFinancials(m, base_amount, base_cost)
    if m.operation_type == "return":
        return MovementFinancials(m, -base_amount, -base_cost)
    if m.operation_type in ("exchange", "bonus", "writeoff"):
        return MovementFinancials(m, 0.0, base_cost)
    # load / transfer_*: stock moves, money does not
    return MovementFinancials(m, 0.0, 0.0)


def calculate_movement_financials(
    movements: Iterable[MovementRead],
    products: Iterable[ProductRead],
) -> list[MovementFinancials]:
    # unknown product -> cost price 0
    cost_prices = {p.id: p.cost_price for p in products}
    return [movement_financials(m, cost_prices.get(m.product_id, 0.0)) for m in movements]


def filter_movements(
    movements: Iterable[MovementRead],
    window: Optional[DateWindow] = None,
    district_id: Optional[str] = None,
    store_id: Optional[str] = None,
    operation_type: Optional[str] = None,
) -> list[MovementRead]:
    """Report filter, newest first."""
    window = window or DateWindow()
    out = [
        m
        for m in movements
        if window.contains(m.date)
        and matches(district_id, m.district_id)
        and matches(store_id, m.store_id)
        and matches(operation_type, m.operation_type)
    ]
    return sorted(out, key=lambda m: as_day(m.date), reverse=True)


# --------------------------------------------------------------------------- #
# Profit mode                                                                 #
# --------------------------------------------------------------------------- #

class OperationCounts(ApiModel):
    sales: int = 0
    returns: int = 0
    exchanges: int = 0
    bonuses: int = 0


class Kpis(ApiModel):
    revenue: float = 0.0
    cost: float = 0.0
    profit: float = 0.0
    ops: OperationCounts = OperationCounts()


class DistrictSummary(ApiModel):
    district_id: str
    district_name: str
    total_revenue: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    sales_qty: int = 0
    returns_qty: int = 0
    exchanges_qty: int = 0
    bonuses_qty: int = 0
    unique_sales_days: int = 0


class StoreSummary(ApiModel):
    district_id: str
    district_name: str
    store_id: Optional[str] = None
    store_name: str
    total_revenue: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    sales_qty: int = 0
    returns_qty: int = 0
    exchanges_qty: int = 0
    bonuses_qty: int = 0
    sales_count: int = 0
    returns_count: int = 0
    exchanges_count: int = 0
    bonuses_count: int = 0


class DailyPoint(ApiModel):
    date: dt.date
    revenue: float = 0.0
    profit: float = 0.0


class FinancialReport(ApiModel):
    kpis: Kpis
    districts: list[DistrictSummary]
    stores: list[StoreSummary]
    daily: list[DailyPoint]


def calculate_kpis(rows: Iterable[MovementFinancials]) -> Kpis:
    kpis = Kpis(ops=OperationCounts())
    counter = {"sale": "sales", "return": "returns", "exchange": "exchanges", "bonus": "bonuses"}
    for r in rows:
        kpis.revenue += r.amount
        kpis.cost += r.cost
        kpis.profit += r.profit
        attr = counter.get(r.movement.operation_type)
        if attr:
            setattr(kpis.ops, attr, getattr(kpis.ops, attr) + 1)
    return kpis


def summarize_districts(
    rows: Iterable[MovementFinancials],
    districts: Iterable[DistrictRead],
) -> list[DistrictSummary]:
    names = {d.id: d.name for d in districts}
    out: dict[str, DistrictSummary] = {}
    sales_days: dict[str, set[dt.date]] = {}

    for r in rows:
        m = r.movement
        item = out.get(m.district_id)
        if item is None:
            item = DistrictSummary(
                district_id=m.district_id,
                district_name=names.get(m.district_id, UNKNOWN_DISTRICT),
            )
            out[m.district_id] = item
            sales_days[m.district_id] = set()

        item.total_revenue += r.amount
        item.total_cost += r.cost
        item.total_profit += r.profit

        attr = _QTY_FIELD.get(m.operation_type)
        if attr:
            setattr(item, attr, getattr(item, attr) + m.quantity)
        if m.operation_type == "sale":
            sales_days[m.district_id].add(as_day(m.date))

    for d_id, item in out.items():
        item.unique_sales_days = len(sales_days[d_id])

    return sorted(out.values(), key=lambda s: s.total_profit, reverse=True)


def summarize_stores(
    rows: Iterable[MovementFinancials],
    districts: Iterable[DistrictRead],
    stores: Iterable[StoreRead],
) -> list[StoreSummary]:
    district_names = {d.id: d.name for d in districts}
    store_names = {s.id: s.name for s in stores}
    out: dict[tuple[Optional[str], Optional[str]], StoreSummary] = {}

    for r in rows:
        m = r.movement
        # district-level shipments (no store) get one bucket per district
        key = (None, m.store_id) if m.store_id else (m.district_id, None)
        item = out.get(key)
        if item is None:
            item = StoreSummary(
                district_id=m.district_id,
                district_name=district_names.get(m.district_id, UNKNOWN_DISTRICT),
                store_id=m.store_id,
                store_name=store_names.get(m.store_id, NO_STORE_NAME) if m.store_id else NO_STORE_NAME,
            )
            out[key] = item

        item.total_revenue += r.amount
        item.total_cost += r.cost
        item.total_profit += r.profit

        qty_attr = _QTY_FIELD.get(m.operation_type)
        if qty_attr:
            setattr(item, qty_attr, getattr(item, qty_attr) + m.quantity)
            count_attr = _COUNT_FIELD[m.operation_type]
            setattr(item, count_attr, getattr(item, count_attr) + 1)

    return sorted(out.values(), key=lambda s: s.total_profit, reverse=True)


def daily_series(rows: Iterable[MovementFinancials]) -> list[DailyPoint]:
    points: dict[dt.date, DailyPoint] = {}
    for r in rows:
        day = as_day(r.movement.date)
        point = points.setdefault(day, DailyPoint(date=day))
        point.revenue += r.amount
        point.profit += r.profit
    return [points[d] for d in sorted(points)]


def build_financial_report(
    movements: Iterable[MovementRead],
    products: Iterable[ProductRead],
    districts: Iterable[DistrictRead],
    stores: Iterable[StoreRead],
    window: Optional[DateWindow] = None,
    district_id: Optional[str] = None,
    store_id: Optional[str] = None,
    operation_type: Optional[str] = None,
) -> FinancialReport:
    districts = tuple(districts)
    filtered = filter_movements(movements, window, district_id, store_id, operation_type)
    calculated = calculate_movement_financials(filtered, products)
    return FinancialReport(
        kpis=calculate_kpis(calculated),
        districts=summarize_districts(calculated, districts),
        stores=summarize_stores(calculated, districts, stores),
        daily=daily_series(calculated),
    )


# --------------------------------------------------------------------------- #
# Revenue mode                                                                #
# --------------------------------------------------------------------------- #

class RevenueReportRow(ApiModel):
    id: str
    name: str
    sub_label: Optional[str] = None
    revenue: float = 0.0
    profit: float = 0.0
    sales_qty: int = 0
    returns_qty: int = 0
    exchanges_qty: int = 0
    bonuses_qty: int = 0
    issue_qty: int = 0
    return_rate: float = 0.0
    bonus_share: float = 0.0


class RevenueReport(ApiModel):
    districts: list[RevenueReportRow]
    stores: list[RevenueReportRow]


def _revenue_part(m: MovementRead) -> float:
    if m.operation_type == "sale":
        return m.quantity * m.unit_price
    if m.operation_type == "return":
        return -m.quantity * m.unit_price
    return 0.0


def _update_revenue_row(row: RevenueReportRow, m: MovementRead) -> None:
    part = _revenue_part(m)
    row.revenue += part
    row.profit += part
    attr = _QTY_FIELD.get(m.operation_type)
    if attr:
        setattr(row, attr, getattr(row, attr) + m.quantity)
    if m.operation_type in ("return", "exchange"):
        row.issue_qty += m.quantity


def _finalize_revenue_row(row: RevenueReportRow) -> RevenueReportRow:
    if row.sales_qty > 0:
        row.return_rate = pct(row.issue_qty, row.sales_qty)
        row.bonus_share = pct(row.bonuses_qty, row.sales_qty)
    return row


def build_revenue_report(
    movements: Iterable[MovementRead],
    districts: Iterable[DistrictRead],
    stores: Iterable[StoreRead],
    window: Optional[DateWindow] = None,
) -> RevenueReport:
    window = window or DateWindow()
    district_names = {d.id: d.name for d in districts}
    store_names = {s.id: s.name for s in stores}
    district_rows: dict[str, RevenueReportRow] = {}
    store_rows: dict[str, RevenueReportRow] = {}

    for m in movements:
        if not window.contains(m.date):
            continue

        d_row = district_rows.get(m.district_id)
        if d_row is None:
            d_row = RevenueReportRow(id=m.district_id, name=district_names.get(m.district_id, UNKNOWN_DISTRICT))
            district_rows[m.district_id] = d_row
        _update_revenue_row(d_row, m)

        key = f"{m.district_id}-{m.store_id or 'unknown'}"
        s_row = store_rows.get(key)
        if s_row is None:
            s_row = RevenueReportRow(
                id=key,
                name=store_names.get(m.store_id, NO_STORE_NAME) if m.store_id else NO_STORE_NAME,
                sub_label=district_names.get(m.district_id, "N/A"),
            )
            store_rows[key] = s_row
        _update_revenue_row(s_row, m)

    return RevenueReport(
        districts=sorted(map(_finalize_revenue_row, district_rows.values()), key=lambda r: r.profit, reverse=True),
        stores=sorted(map(_finalize_revenue_row, store_rows.values()), key=lambda r: r.profit, reverse=True),
    )


# --------------------------------------------------------------------------- #
# Plan vs actual                                                              #
# --------------------------------------------------------------------------- #

class PlanProgressRow(ApiModel):
    plan_id: str
    district_id: str
    district_name: str
    period_start: dt.date
    period_end: dt.date
    plan_revenue: float
    actual_revenue: float = 0.0
    completion_pct: float = 0.0
    remaining: float = 0.0


def calculate_plan_progress(
    plans: Iterable[RevenuePlanRead],
    movements: Iterable[MovementRead],
    products: Iterable[ProductRead],
    districts: Iterable[DistrictRead],
) -> list[PlanProgressRow]:
    """Actual profit-mode revenue of each plan's district within its period."""
    district_names = {d.id: d.name for d in districts}
    calculated = calculate_movement_financials(movements, products)
    out: list[PlanProgressRow] = []

    for plan in plans:
        window = DateWindow(plan.period_start, plan.period_end)
        actual = sum(
            r.amount
            for r in calculated
            if r.movement.district_id == plan.district_id and window.contains(r.movement.date)
        )
        out.append(
            PlanProgressRow(
                plan_id=plan.id,
                district_id=plan.district_id,
                district_name=district_names.get(plan.district_id, UNKNOWN_DISTRICT),
                period_start=plan.period_start,
                period_end=plan.period_end,
                plan_revenue=plan.plan_revenue,
                actual_revenue=actual,
                completion_pct=pct(actual, plan.plan_revenue),
                remaining=max(0.0, plan.plan_revenue - actual),
            )
        )
    return out
