"""
Production reconciliation: produced quantity against net outflow per
``(date, product)``.

Only days / products with registered production are evaluated.  Movements
on a day without a matching batch are dropped rather than reported as
orphans.
"""

from __future__ import annotations

import logging
import datetime as dt
from typing import Iterable, Optional

from app.schemas import ApiModel, MovementRead, ProductRead, ProductionBatchRead
from app.services.filters import DateWindow, as_day, name_key

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown product"


class ProductionSummaryRow(ApiModel):
    id: str  # "<yyyy-MM-dd>-<productId>"
    date: dt.date
    product_id: str
    product_name: str
    produced_qty: int = 0
    bonus_pool_qty: int = 0
    sales_qty: int = 0
    bonus_qty: int = 0
    returns_qty: int = 0
    exchanges_qty: int = 0
    net_outflow_qty: int = 0
    theoretical_rest_qty: int = 0


_TALLY = {
    "sale": "sales_qty",
    "bonus": "bonus_qty",
    "return": "returns_qty",
    "exchange": "exchanges_qty",
}


def calculate_production_summary(
    batches: Iterable[ProductionBatchRead],
    movements: Iterable[MovementRead],
    products: Iterable[ProductRead],
    window: Optional[DateWindow] = None,
) -> list[ProductionSummaryRow]:
    window = window or DateWindow()
    product_names = {p.id: p.name for p in products}
    rows: dict[str, ProductionSummaryRow] = {}

    for b in batches:
        if not window.contains(b.date):
            continue
        day = as_day(b.date)
        key = f"{day.isoformat()}-{b.product_id}"
        row = rows.get(key)
        if row is None:
            row = ProductionSummaryRow(
                id=key,
                date=day,
                product_id=b.product_id,
                product_name=product_names.get(b.product_id, UNKNOWN_PRODUCT),
            )
            rows[key] = row
        row.produced_qty += b.produced_qty
        row.bonus_pool_qty += b.bonus_pool_qty

    if not rows:
        return []

    dropped = 0
    for m in movements:
        row = rows.get(f"{as_day(m.date).isoformat()}-{m.product_id}")
        if row is None:
            dropped += 1
            continue
        attr = _TALLY.get(m.operation_type)
        if attr:
            setattr(row, attr, getattr(row, attr) + m.quantity)

    if dropped:
        logger.debug("calculate_production_summary: %d movement(s) outside production days", dropped)

    for row in rows.values():
        row.net_outflow_qty = row.sales_qty + row.bonus_qty + row.exchanges_qty - row.returns_qty
        row.theoretical_rest_qty = row.produced_qty - row.net_outflow_qty

    # date desc, then product name asc
    out = sorted(rows.values(), key=lambda r: name_key(r.product_name))
    return sorted(out, key=lambda r: r.date, reverse=True)
