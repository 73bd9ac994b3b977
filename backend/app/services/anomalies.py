"""
Return / bonus / exchange rate alerts.
"""

from __future__ import annotations

import logging
from typing import Iterable, Literal

from app.schemas import ApiModel, MovementRead, ProductRead, StoreRead
from app.services.filters import pct, round_half_up

logger = logging.getLogger(__name__)

AlertType = Literal["returns", "bonuses", "exchanges"]

# percent of sales; an alert fires strictly above the threshold
STORE_THRESHOLDS: tuple[tuple[AlertType, float], ...] = (
    ("returns", 10.0),
    ("bonuses", 5.0),
    ("exchanges", 10.0),
)
PRODUCT_MIN_SALES = 5
PRODUCT_RATE_THRESHOLD = 15.0


class StoreAlert(ApiModel):
    store_id: str
    store_name: str
    type: AlertType
    percent: int


class ProductReturnAlert(ApiModel):
    id: str  # "<storeId>:<productId>"
    store_id: str
    product_id: str
    store_name: str
    product_name: str
    sales: int
    returns: int
    rate: int


class AnomalyReport(ApiModel):
    stores: list[StoreAlert]
    products: list[ProductReturnAlert]


def detect_store_anomalies(
    movements: Iterable[MovementRead],
    stores: Iterable[StoreRead],
) -> list[StoreAlert]:
    store_names = {s.id: s.name for s in stores}
    stats: dict[str, dict[str, int]] = {}
    field = {"sale": "sales", "return": "returns", "bonus": "bonuses", "exchange": "exchanges"}

    for m in movements:
        if not m.store_id:
            continue
        entry = stats.setdefault(m.store_id, {"sales": 0, "returns": 0, "bonuses": 0, "exchanges": 0})
        key = field.get(m.operation_type)
        if key:
            entry[key] += m.quantity

    alerts: list[StoreAlert] = []
    for store_id, entry in stats.items():
        name = store_names.get(store_id)
        if name is None or entry["sales"] == 0:
            continue
        for kind, threshold in STORE_THRESHOLDS:
            percent = pct(entry[kind], entry["sales"])
            if percent > threshold:
                alerts.append(
                    StoreAlert(store_id=store_id, store_name=name, type=kind, percent=round_half_up(percent))
                )
    return alerts


def detect_product_anomalies(
    movements: Iterable[MovementRead],
    stores: Iterable[StoreRead],
    products: Iterable[ProductRead],
) -> list[ProductReturnAlert]:
    """Store x product pairs with too many returns.

    Exchanges count as returns here: both point at a quality problem.
    """
    store_names = {s.id: s.name for s in stores}
    product_names = {p.id: p.name for p in products}
    stats: dict[tuple[str, str], list[int]] = {}

    for m in movements:
        if not m.store_id:
            continue
        entry = stats.setdefault((m.store_id, m.product_id), [0, 0])
        if m.operation_type == "sale":
            entry[0] += m.quantity
        elif m.operation_type in ("return", "exchange"):
            entry[1] += m.quantity

    alerts: list[ProductReturnAlert] = []
    unresolved = 0
    for (store_id, product_id), (sales, returns) in stats.items():
        if sales < PRODUCT_MIN_SALES:
            continue
        rate = pct(returns, sales)
        if rate <= PRODUCT_RATE_THRESHOLD:
            continue
        if store_id not in store_names or product_id not in product_names:
            unresolved += 1
            continue
        alerts.append(
            ProductReturnAlert(
                id=f"{store_id}:{product_id}",
                store_id=store_id,
                product_id=product_id,
                store_name=store_names[store_id],
                product_name=product_names[product_id],
                sales=sales,
                returns=returns,
                rate=round_half_up(rate),
            )
        )

    if unresolved:
        logger.debug("detect_product_anomalies: %d alert(s) with unknown store/product dropped", unresolved)

    alerts.sort(key=lambda a: a.rate, reverse=True)
    return alerts


def detect_anomalies(
    movements: Iterable[MovementRead],
    stores: Iterable[StoreRead],
    products: Iterable[ProductRead],
) -> AnomalyReport:
    movements = tuple(movements)
    stores = tuple(stores)
    return AnomalyReport(
        stores=detect_store_anomalies(movements, stores),
        products=detect_product_anomalies(movements, stores, products),
    )
