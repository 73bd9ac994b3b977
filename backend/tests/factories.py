"""Snapshot builders for the pure report tests."""

import datetime as dt
from itertools import count

from app.schemas import (
    DistrictRead,
    MovementRead,
    ProductRead,
    ProductionBatchRead,
    RevenuePlanRead,
    StorePaymentRead,
    StoreRead,
)

_seq = count(1)


def day(value):
    return dt.date.fromisoformat(value) if isinstance(value, str) else value


def district(id="d1", name="North"):
    return DistrictRead(id=id, name=name)


def store(id="s1", name="Alpha", district_id="d1"):
    return StoreRead(id=id, name=name, district_id=district_id)


def product(id="p1", name="Bread", cost_price=0.0, sale_price=0.0):
    return ProductRead(id=id, name=name, cost_price=cost_price, sale_price=sale_price)


def movement(
    operation_type="sale",
    quantity=1,
    unit_price=100.0,
    date="2024-05-01",
    district_id="d1",
    store_id="s1",
    product_id="p1",
    payment_type="cash",
    comment=None,
):
    return MovementRead(
        id=f"m{next(_seq)}",
        date=day(date),
        district_id=district_id,
        store_id=store_id,
        product_id=product_id,
        operation_type=operation_type,
        payment_type=payment_type,
        quantity=quantity,
        unit_price=unit_price,
        comment=comment,
    )


def payment(amount, date="2024-05-01", store_id="s1", district_id=None):
    return StorePaymentRead(
        id=f"pay{next(_seq)}",
        date=day(date),
        district_id=district_id,
        store_id=store_id,
        amount=amount,
    )


def batch(produced_qty, date="2024-05-01", product_id="p1", bonus_pool_qty=0):
    return ProductionBatchRead(
        id=f"b{next(_seq)}",
        date=day(date),
        product_id=product_id,
        produced_qty=produced_qty,
        bonus_pool_qty=bonus_pool_qty,
    )


def plan(plan_revenue, period_start="2024-05-01", period_end="2024-05-31", district_id="d1"):
    return RevenuePlanRead(
        id=f"plan{next(_seq)}",
        district_id=district_id,
        period_start=day(period_start),
        period_end=day(period_end),
        plan_revenue=plan_revenue,
    )
