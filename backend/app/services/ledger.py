"""
Store debt ledger.

Goods shipped on credit raise a store's debt, goods returned on credit lower
it, and payments lower it.  One row per ``(district, store)`` pair, largest
debtor first.  A store with payments but no credit movements still gets a
row; its balance is then negative (overpayment).
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from app.schemas import ApiModel, DistrictRead, MovementRead, StorePaymentRead, StoreRead
from app.services.filters import DateWindow, matches

logger = logging.getLogger(__name__)

UNKNOWN_DISTRICT = "Unknown district"
UNKNOWN_STORE = "Unknown store"


class StoreDebtRow(ApiModel):
    id: str  # "<districtId>-<storeId>"
    district_id: str
    store_id: str
    district_name: str
    store_name: str
    credit_amount: float = 0.0
    payments_amount: float = 0.0
    balance: float = 0.0


def calculate_debts(
    movements: Iterable[MovementRead],
    payments: Iterable[StorePaymentRead],
    stores: Iterable[StoreRead],
    districts: Iterable[DistrictRead],
    window: Optional[DateWindow] = None,
    district_id: Optional[str] = None,
    store_id: Optional[str] = None,
) -> list[StoreDebtRow]:
    window = window or DateWindow()
    store_by_id = {s.id: s for s in stores}
    district_names = {d.id: d.name for d in districts}
    rows: dict[str, StoreDebtRow] = {}

    def _row(d_id: str, s_id: str) -> StoreDebtRow:
        key = f"{d_id}-{s_id}"
        row = rows.get(key)
        if row is None:
            store = store_by_id.get(s_id)
            row = StoreDebtRow(
                id=key,
                district_id=d_id,
                store_id=s_id,
                district_name=district_names.get(d_id, UNKNOWN_DISTRICT),
                store_name=store.name if store else UNKNOWN_STORE,
            )
            rows[key] = row
        return row

    for m in movements:
        if m.payment_type != "credit" or not m.store_id:
            continue
        if not matches(district_id, m.district_id) or not matches(store_id, m.store_id):
            continue
        if not window.contains(m.date):
            continue
        # a return on credit means the store handed goods back
        sign = -1 if m.operation_type == "return" else 1
        amount = sign * m.quantity * m.unit_price
        row = _row(m.district_id, m.store_id)
        row.credit_amount += amount
        row.balance += amount

    skipped = 0
    for p in payments:
        store = store_by_id.get(p.store_id)
        p_district = p.district_id or (store.district_id if store else None)
        if not p_district:
            skipped += 1
            continue
        if not matches(district_id, p_district) or not matches(store_id, p.store_id):
            continue
        if not window.contains(p.date):
            continue
        row = _row(p_district, p.store_id)
        row.payments_amount += p.amount
        row.balance -= p.amount

    if skipped:
        logger.debug("calculate_debts: %d payment(s) without a resolvable district skipped", skipped)

    return sorted(rows.values(), key=lambda r: r.balance, reverse=True)
