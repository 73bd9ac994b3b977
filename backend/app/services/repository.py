"""
Query layer: typed fetch functions returning immutable snapshots.

Report services never touch the session; routers load what they need here
and pass plain tuples of frozen ``*Read`` models to the pure aggregation
functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlmodel import Session, select

from app.models import District, Movement, Product, ProductionBatch, RevenuePlan, Store, StorePayment
from app.schemas import (
    DistrictRead,
    MovementRead,
    ProductRead,
    ProductionBatchRead,
    RevenuePlanRead,
    StorePaymentRead,
    StoreRead,
)


@dataclass(frozen=True)
class Snapshot:
    districts: tuple[DistrictRead, ...] = ()
    stores: tuple[StoreRead, ...] = ()
    products: tuple[ProductRead, ...] = ()
    movements: tuple[MovementRead, ...] = ()
    batches: tuple[ProductionBatchRead, ...] = ()
    payments: tuple[StorePaymentRead, ...] = ()
    plans: tuple[RevenuePlanRead, ...] = ()


def list_districts(ses: Session) -> tuple[DistrictRead, ...]:
    rows = ses.exec(select(District).order_by(District.name)).all()
    return tuple(DistrictRead.model_validate(r) for r in rows)


def list_stores(ses: Session) -> tuple[StoreRead, ...]:
    rows = ses.exec(select(Store).order_by(Store.name)).all()
    return tuple(StoreRead.model_validate(r) for r in rows)


def list_products(ses: Session) -> tuple[ProductRead, ...]:
    rows = ses.exec(select(Product).order_by(Product.name)).all()
    return tuple(ProductRead.model_validate(r) for r in rows)


def list_movements(
    ses: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> tuple[MovementRead, ...]:
    stmt = select(Movement)
    if date_from is not None:
        stmt = stmt.where(Movement.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Movement.date <= date_to)
    stmt = stmt.order_by(Movement.date.desc(), Movement.created_at.desc())
    return tuple(MovementRead.model_validate(r) for r in ses.exec(stmt).all())


def list_payments(
    ses: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> tuple[StorePaymentRead, ...]:
    stmt = select(StorePayment)
    if date_from is not None:
        stmt = stmt.where(StorePayment.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(StorePayment.date <= date_to)
    stmt = stmt.order_by(StorePayment.date.desc(), StorePayment.created_at.desc())
    return tuple(StorePaymentRead.model_validate(r) for r in ses.exec(stmt).all())


def list_production_batches(ses: Session, limit: Optional[int] = None) -> tuple[ProductionBatchRead, ...]:
    stmt = select(ProductionBatch).order_by(ProductionBatch.date.desc(), ProductionBatch.created_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    return tuple(ProductionBatchRead.model_validate(r) for r in ses.exec(stmt).all())


def list_revenue_plans(ses: Session) -> tuple[RevenuePlanRead, ...]:
    rows = ses.exec(select(RevenuePlan).order_by(RevenuePlan.period_start.desc())).all()
    return tuple(RevenuePlanRead.model_validate(r) for r in rows)


def load_snapshot(ses: Session) -> Snapshot:
    """Every collection, unfiltered, the way each dashboard page loads them."""
    return Snapshot(
        districts=list_districts(ses),
        stores=list_stores(ses),
        products=list_products(ses),
        movements=list_movements(ses),
        batches=list_production_batches(ses),
        payments=list_payments(ses),
        plans=list_revenue_plans(ses),
    )


def produced_on(ses: Session, day: date, product_id: str) -> int:
    """Total produced pieces of *product_id* on *day*."""
    rows = ses.exec(
        select(ProductionBatch.produced_qty).where(
            ProductionBatch.date == day, ProductionBatch.product_id == product_id
        )
    ).all()
    return int(sum(rows))


def consumed_on(ses: Session, day: date, product_id: str, operation_types: frozenset[str]) -> int:
    """Pieces of *product_id* drawn by *operation_types* on *day*."""
    rows = ses.exec(
        select(Movement.quantity).where(
            Movement.date == day,
            Movement.product_id == product_id,
            Movement.operation_type.in_(sorted(operation_types)),
        )
    ).all()
    return int(sum(rows))
