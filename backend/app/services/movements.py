"""
Movement / payment / production writes.

Movements are append-only.  ``district_id`` may be left out when the store
has a district; every referenced id must exist.  With
``PRODUCTION_CAP_ENFORCED`` a consuming movement cannot take more of a
product than was produced that day.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import Session

from app.core import config
from app.core.errors import ValidationFailed
from app.models import Movement, ProductionBatch, RevenuePlan, StorePayment
from app.schemas import (
    CONSUMING_OPERATIONS,
    DailyReportIn,
    MovementCreate,
    MovementRead,
    ProductionBatchCreate,
    ProductionBatchRead,
    RevenuePlanCreate,
    RevenuePlanRead,
    StorePaymentCreate,
    StorePaymentRead,
)
from app.services import repository
from app.services.directory import ensure_district, ensure_product, ensure_store

logger = logging.getLogger(__name__)

DAILY_REPORT_COMMENT = "Daily report"


def _resolve_district(ses: Session, district_id: Optional[str], store_id: Optional[str]) -> str:
    store = ensure_store(ses, store_id) if store_id else None
    if district_id:
        ensure_district(ses, district_id)
        return district_id
    if store is not None and store.district_id:
        return store.district_id
    raise ValidationFailed("districtId is required (store has no district)")


def check_production_cap(ses: Session, movement: Movement, pending: int = 0) -> None:
    """Raise when *movement* would consume more than the day's production.

    *pending* is quantity already staged in the current transaction.
    """
    if not config.PRODUCTION_CAP_ENFORCED or movement.operation_type not in CONSUMING_OPERATIONS:
        return
    produced = repository.produced_on(ses, movement.date, movement.product_id)
    consumed = repository.consumed_on(ses, movement.date, movement.product_id, CONSUMING_OPERATIONS)
    if consumed + pending + movement.quantity > produced:
        logger.warning(
            "production cap: product=%s date=%s produced=%d consumed=%d requested=%d",
            movement.product_id, movement.date, produced, consumed + pending, movement.quantity,
        )
        raise ValidationFailed(
            f"Quantity exceeds production for {movement.date.isoformat()}: "
            f"produced {produced}, already used {consumed + pending}, requested {movement.quantity}"
        )


def build_movement(ses: Session, payload: MovementCreate) -> Movement:
    ensure_product(ses, payload.product_id)
    district_id = _resolve_district(ses, payload.district_id, payload.store_id)
    data = payload.model_dump()
    data["district_id"] = district_id
    return Movement(**data)


def create_movement(ses: Session, payload: MovementCreate) -> MovementRead:
    movement = build_movement(ses, payload)
    check_production_cap(ses, movement)
    ses.add(movement)
    ses.commit()
    ses.refresh(movement)
    logger.info("movement created id=%s type=%s qty=%d", movement.id, movement.operation_type, movement.quantity)
    return MovementRead.model_validate(movement)


def create_daily_report(ses: Session, payload: DailyReportIn) -> list[MovementRead]:
    """One movement per positive quantity of the sheet, in a single commit."""
    store = ensure_store(ses, payload.store_id)
    if not store.district_id:
        raise ValidationFailed("Store has no district")

    staged: list[Movement] = []
    pending: dict[str, int] = {}
    for product_id, ops in payload.entries.items():
        product = ensure_product(ses, product_id)
        for operation_type, qty in ops.items():
            if qty is None or qty <= 0:
                continue
            movement = Movement(
                date=payload.date,
                district_id=store.district_id,
                store_id=store.id,
                product_id=product.id,
                operation_type=operation_type,
                payment_type=payload.payment_type,
                quantity=qty,
                unit_price=product.sale_price,
                comment=DAILY_REPORT_COMMENT,
            )
            check_production_cap(ses, movement, pending.get(product.id, 0))
            if operation_type in CONSUMING_OPERATIONS:
                pending[product.id] = pending.get(product.id, 0) + qty
            staged.append(movement)

    if not staged:
        raise ValidationFailed("Daily report has no quantities")

    ses.add_all(staged)
    ses.commit()
    for movement in staged:
        ses.refresh(movement)
    logger.info("daily report store=%s date=%s movements=%d", store.id, payload.date, len(staged))
    return [MovementRead.model_validate(m) for m in staged]


def create_payment(ses: Session, payload: StorePaymentCreate) -> StorePaymentRead:
    ensure_store(ses, payload.store_id)
    if payload.district_id:
        ensure_district(ses, payload.district_id)
    payment = StorePayment(**payload.model_dump())
    ses.add(payment)
    ses.commit()
    ses.refresh(payment)
    logger.info("store payment created id=%s store=%s amount=%.2f", payment.id, payment.store_id, payment.amount)
    return StorePaymentRead.model_validate(payment)


def create_production_batch(ses: Session, payload: ProductionBatchCreate) -> ProductionBatchRead:
    ensure_product(ses, payload.product_id)
    batch = ProductionBatch(**payload.model_dump())
    ses.add(batch)
    ses.commit()
    ses.refresh(batch)
    logger.info("production batch created id=%s product=%s qty=%d", batch.id, batch.product_id, batch.produced_qty)
    return ProductionBatchRead.model_validate(batch)


def create_revenue_plan(ses: Session, payload: RevenuePlanCreate) -> RevenuePlanRead:
    ensure_district(ses, payload.district_id)
    plan = RevenuePlan(**payload.model_dump())
    ses.add(plan)
    ses.commit()
    ses.refresh(plan)
    logger.info("revenue plan created id=%s district=%s", plan.id, plan.district_id)
    return RevenuePlanRead.model_validate(plan)
