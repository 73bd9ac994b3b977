"""
District / store / product directory writes.

Renames and reassignments are applied as a local transaction: the change is
committed, or on a database error rolled back and the stored row re-read, so
the caller always gets back the row as it really is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from app.core.errors import NotFoundError, ValidationFailed
from app.models import District, Product, Store
from app.schemas import (
    ApiModel,
    DistrictIn,
    DistrictRead,
    ProductCreate,
    ProductRead,
    StoreCreate,
    StorePatch,
    StoreRead,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ApiModel)


@dataclass(frozen=True)
class MutationResult(Generic[R]):
    ok: bool
    row: Optional[R]
    error: Optional[str] = None


def _commit_change(
    ses: Session,
    obj: SQLModel,
    changes: dict[str, Any],
    read_model: type[R],
) -> MutationResult[R]:
    model = type(obj)
    obj_id = obj.id
    for key, value in changes.items():
        setattr(obj, key, value)
    ses.add(obj)
    try:
        ses.commit()
    except SQLAlchemyError:
        logger.exception("update of %s %s failed; rolled back", model.__tablename__, obj_id)
        ses.rollback()
        current = ses.get(model, obj_id)
        return MutationResult(
            ok=False,
            row=read_model.model_validate(current) if current is not None else None,
            error="Database error",
        )
    ses.refresh(obj)
    return MutationResult(ok=True, row=read_model.model_validate(obj))


def _get_or_404(ses: Session, model: type[SQLModel], entity: str, obj_id: str):
    obj = ses.get(model, obj_id)
    if obj is None:
        raise NotFoundError(entity, obj_id)
    return obj


def ensure_district(ses: Session, district_id: str) -> District:
    return _get_or_404(ses, District, "District", district_id)


def ensure_store(ses: Session, store_id: str) -> Store:
    return _get_or_404(ses, Store, "Store", store_id)


def ensure_product(ses: Session, product_id: str) -> Product:
    return _get_or_404(ses, Product, "Product", product_id)


# --------------------------------------------------------------------------- #
# Districts                                                                   #
# --------------------------------------------------------------------------- #

def create_district(ses: Session, payload: DistrictIn) -> DistrictRead:
    district = District(name=payload.name)
    ses.add(district)
    ses.commit()
    ses.refresh(district)
    logger.info("district created id=%s", district.id)
    return DistrictRead.model_validate(district)


def rename_district(ses: Session, district_id: str, payload: DistrictIn) -> MutationResult[DistrictRead]:
    district = ensure_district(ses, district_id)
    return _commit_change(ses, district, {"name": payload.name}, DistrictRead)


def delete_district(ses: Session, district_id: str) -> int:
    """Delete a district and unassign its stores; returns the store count."""
    district = ensure_district(ses, district_id)
    stores = ses.exec(select(Store).where(Store.district_id == district_id)).all()
    for store in stores:
        store.district_id = None
        ses.add(store)
    ses.delete(district)
    ses.commit()
    logger.info("district deleted id=%s unassigned_stores=%d", district_id, len(stores))
    return len(stores)


# --------------------------------------------------------------------------- #
# Stores                                                                      #
# --------------------------------------------------------------------------- #

def create_store(ses: Session, payload: StoreCreate) -> StoreRead:
    district_id = payload.district_id or None
    if district_id:
        ensure_district(ses, district_id)
    store = Store(name=payload.name, district_id=district_id, address=payload.address)
    ses.add(store)
    ses.commit()
    ses.refresh(store)
    logger.info("store created id=%s district=%s", store.id, store.district_id)
    return StoreRead.model_validate(store)


def update_store(ses: Session, store_id: str, patch: StorePatch) -> MutationResult[StoreRead]:
    """Apply only the fields present in *patch*."""
    if not patch.model_fields_set:
        raise ValidationFailed("Nothing to update")
    store = ensure_store(ses, store_id)
    changes = patch.model_dump(include=patch.model_fields_set)
    if changes.get("name", "") is None:
        changes.pop("name")
    if changes.get("district_id"):
        ensure_district(ses, changes["district_id"])
    return _commit_change(ses, store, changes, StoreRead)


def delete_store(ses: Session, store_id: str) -> None:
    # movements / payments keep the id; reports show "Unknown store"
    store = ensure_store(ses, store_id)
    ses.delete(store)
    ses.commit()
    logger.info("store deleted id=%s", store_id)


# --------------------------------------------------------------------------- #
# Products                                                                    #
# --------------------------------------------------------------------------- #

def create_product(ses: Session, payload: ProductCreate) -> ProductRead:
    product = Product(**payload.model_dump())
    ses.add(product)
    ses.commit()
    ses.refresh(product)
    logger.info("product created id=%s", product.id)
    return ProductRead.model_validate(product)
