"""
Store-level stock computed from movement history.

* ``calculate_stock`` – as-of-date balance per ``(store, product)``.
* ``summarize_inventory_movements`` – day sheet of warehouse operations
  (load / return / writeoff) per ``(date, store, product)``.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, Optional

from app.schemas import ApiModel, MovementRead, ProductRead, StoreRead
from app.services.filters import DateWindow, as_day, matches, name_key

logger = logging.getLogger(__name__)

# inbound +1, outbound -1; anything else does not move stock
MOVEMENT_SIGN: dict[str, int] = {
    "load": 1,
    "return": 1,
    "transfer_in": 1,
    "sale": -1,
    "bonus": -1,
    "exchange": -1,
    "writeoff": -1,
    "transfer_out": -1,
}


def movement_sign(operation_type: str) -> int:
    return MOVEMENT_SIGN.get(operation_type, 0)


class StockRow(ApiModel):
    id: str  # "<storeId>-<productId>"
    store_id: str
    store_name: str
    product_id: str
    product_name: str
    total_in: int = 0
    total_out: int = 0
    balance: int = 0


def calculate_stock(
    movements: Iterable[MovementRead],
    stores: Iterable[StoreRead],
    products: Iterable[ProductRead],
    report_date: dt.date,
    store_id: Optional[str] = None,
) -> list[StockRow]:
    """Balance per store / product at the end of *report_date*.

    Movements without a store are excluded (the view is store-scoped), as
    are rows whose store or product no longer exists.
    """
    store_names = {s.id: s.name for s in stores}
    product_names = {p.id: p.name for p in products}
    cutoff = as_day(report_date)
    rows: dict[str, StockRow] = {}
    unresolved = 0

    for m in movements:
        if as_day(m.date) > cutoff:
            continue
        if not m.store_id or not matches(store_id, m.store_id):
            continue
        sign = movement_sign(m.operation_type)
        if sign == 0:
            continue

        key = f"{m.store_id}-{m.product_id}"
        row = rows.get(key)
        if row is None:
            if m.store_id not in store_names or m.product_id not in product_names:
                unresolved += 1
                continue
            row = StockRow(
                id=key,
                store_id=m.store_id,
                store_name=store_names[m.store_id],
                product_id=m.product_id,
                product_name=product_names[m.product_id],
            )
            rows[key] = row

        if sign > 0:
            row.total_in += m.quantity
        else:
            row.total_out += m.quantity
        row.balance += sign * m.quantity

    if unresolved:
        logger.debug("calculate_stock: %d movement(s) with unknown store/product dropped", unresolved)

    return sorted(rows.values(), key=lambda r: (name_key(r.store_name), name_key(r.product_name)))


# --------------------------------------------------------------------------- #
# Warehouse day sheet                                                         #
# --------------------------------------------------------------------------- #

WAREHOUSE_OPERATIONS = ("load", "return", "writeoff")
NO_STORE = "unknown"


class InventoryMovementRow(ApiModel):
    id: str  # "<yyyy-MM-dd>_<storeId>_<productId>"
    date: dt.date
    store_id: str
    store_name: str
    product_id: str
    product_name: str
    loaded: int = 0
    returned: int = 0
    writeoff: int = 0
    net: int = 0
    comments: list[str] = []


class InventoryMovementTotals(ApiModel):
    total_loaded: int = 0
    total_returned: int = 0
    total_writeoff: int = 0
    total_net: int = 0


class InventoryMovementSummary(ApiModel):
    rows: list[InventoryMovementRow]
    totals: InventoryMovementTotals


def summarize_inventory_movements(
    movements: Iterable[MovementRead],
    stores: Iterable[StoreRead],
    products: Iterable[ProductRead],
    window: Optional[DateWindow] = None,
    store_id: Optional[str] = None,
) -> InventoryMovementSummary:
    window = window or DateWindow()
    store_names = {s.id: s.name for s in stores}
    product_names = {p.id: p.name for p in products}
    rows: dict[str, InventoryMovementRow] = {}

    for m in movements:
        if m.operation_type not in WAREHOUSE_OPERATIONS:
            continue
        if not window.contains(m.date) or not matches(store_id, m.store_id):
            continue

        day = as_day(m.date)
        s_id = m.store_id or NO_STORE
        key = f"{day.isoformat()}_{s_id}_{m.product_id}"
        row = rows.get(key)
        if row is None:
            row = InventoryMovementRow(
                id=key,
                date=day,
                store_id=s_id,
                store_name="-" if s_id == NO_STORE else store_names.get(s_id, "Unknown store"),
                product_id=m.product_id,
                product_name=product_names.get(m.product_id, "Deleted product"),
                comments=[],
            )
            rows[key] = row

        if m.operation_type == "load":
            row.loaded += m.quantity
        elif m.operation_type == "return":
            row.returned += m.quantity
        else:
            row.writeoff += m.quantity

        comment = (m.comment or "").strip()
        if comment and comment not in row.comments:
            row.comments.append(comment)

    totals = InventoryMovementTotals()
    for row in rows.values():
        row.net = row.loaded - row.returned - row.writeoff
        totals.total_loaded += row.loaded
        totals.total_returned += row.returned
        totals.total_writeoff += row.writeoff
        totals.total_net += row.net

    # date desc, then store name, then product name
    out = sorted(rows.values(), key=lambda r: (name_key(r.store_name), name_key(r.product_name)))
    out.sort(key=lambda r: r.date, reverse=True)
    return InventoryMovementSummary(rows=out, totals=totals)
