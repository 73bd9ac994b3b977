"""
Request / response models for the JSON API.

* Wire format is camelCase (``districtId``); Python attributes stay
  snake_case.  Both spellings are accepted on input.
* ``*Read`` models are frozen: the repository layer hands them to the
  report services as immutable snapshots of the database rows.
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator
from pydantic.alias_generators import to_camel

OperationType = Literal[
    "sale",
    "return",
    "exchange",
    "bonus",
    "writeoff",
    "load",
    "transfer_in",
    "transfer_out",
]
PaymentMethod = Literal["cash", "kaspi", "card", "transfer", "credit"]

OPERATION_TYPES: tuple[str, ...] = OperationType.__args__  # type: ignore[attr-defined]
PAYMENT_METHODS: tuple[str, ...] = PaymentMethod.__args__  # type: ignore[attr-defined]

# operations that draw down the day's production
CONSUMING_OPERATIONS = frozenset({"sale", "exchange", "bonus", "writeoff"})

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SnapshotModel(ApiModel):
    model_config = ConfigDict(frozen=True)


# --------------------------------------------------------------------------- #
# Read models / snapshots                                                     #
# --------------------------------------------------------------------------- #

class DistrictRead(SnapshotModel):
    id: str
    name: str


class StoreRead(SnapshotModel):
    id: str
    name: str
    district_id: Optional[str] = None
    address: Optional[str] = None


class ProductRead(SnapshotModel):
    id: str
    name: str
    cost_price: float = 0.0
    sale_price: float = 0.0


class MovementRead(SnapshotModel):
    id: str
    date: dt.date
    district_id: str
    store_id: Optional[str] = None
    product_id: str
    operation_type: str
    payment_type: str = "cash"
    quantity: int
    unit_price: float
    comment: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class ProductionBatchRead(SnapshotModel):
    id: str
    date: dt.date
    product_id: str
    produced_qty: int
    bonus_pool_qty: int = 0
    comment: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class StorePaymentRead(SnapshotModel):
    id: str
    date: dt.date
    district_id: Optional[str] = None
    store_id: str
    amount: float
    method: str = "cash"
    comment: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class RevenuePlanRead(SnapshotModel):
    id: str
    district_id: str
    period_start: dt.date
    period_end: dt.date
    plan_revenue: float


# --------------------------------------------------------------------------- #
# Write payloads                                                              #
# --------------------------------------------------------------------------- #

class DistrictIn(ApiModel):
    name: NonEmptyStr


class StoreCreate(ApiModel):
    name: NonEmptyStr
    district_id: Optional[str] = None
    address: Optional[str] = None


class StorePatch(ApiModel):
    """Partial update; ``districtId`` of ``null`` or ``"none"`` unassigns."""

    name: Optional[NonEmptyStr] = None
    district_id: Optional[str] = None
    address: Optional[str] = None

    @field_validator("district_id")
    @classmethod
    def _none_means_unassigned(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() in ("", "none"):
            return None
        return v.strip()


class ProductCreate(ApiModel):
    name: NonEmptyStr
    cost_price: float = Field(default=0.0, ge=0)
    sale_price: float = Field(default=0.0, ge=0)

    @field_validator("cost_price", "sale_price", mode="before")
    @classmethod
    def _blank_price_is_zero(cls, v):
        return 0.0 if v in (None, "") else v


class MovementCreate(ApiModel):
    date: dt.date
    district_id: Optional[str] = None
    store_id: Optional[str] = None
    product_id: NonEmptyStr
    operation_type: OperationType
    payment_type: PaymentMethod = "cash"
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)
    comment: Optional[str] = None

    @field_validator("payment_type", mode="before")
    @classmethod
    def _default_payment(cls, v):
        return "cash" if v in (None, "") else v

    @field_validator("district_id", "store_id", mode="before")
    @classmethod
    def _blank_id_is_none(cls, v):
        if isinstance(v, str) and v.strip() in ("", "none"):
            return None
        return v


class DailyReportIn(ApiModel):
    """Per-store daily sheet: ``{productId: {operationType: qty}}``."""

    date: dt.date
    store_id: NonEmptyStr
    payment_type: PaymentMethod = "cash"
    entries: dict[str, dict[OperationType, int]]


class StorePaymentCreate(ApiModel):
    date: dt.date
    district_id: Optional[str] = None
    store_id: NonEmptyStr
    amount: float
    method: PaymentMethod = "cash"
    comment: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, v: float) -> float:
        if not v > 0 or v == float("inf"):
            raise ValueError("Invalid amount")
        return v

    @field_validator("method", mode="before")
    @classmethod
    def _default_method(cls, v):
        return "cash" if v in (None, "") else v


class ProductionBatchCreate(ApiModel):
    date: dt.date
    product_id: NonEmptyStr
    produced_qty: int = Field(ge=0)
    bonus_pool_qty: int = Field(default=0, ge=0)
    comment: Optional[str] = None

    @field_validator("bonus_pool_qty", mode="before")
    @classmethod
    def _blank_pool_is_zero(cls, v):
        return 0 if v in (None, "") else v


class RevenuePlanCreate(ApiModel):
    district_id: NonEmptyStr
    period_start: dt.date
    period_end: dt.date
    plan_revenue: float = Field(ge=0)

    @model_validator(mode="after")
    def _period_order(self) -> "RevenuePlanCreate":
        if self.period_end < self.period_start:
            raise ValueError("periodEnd must not be before periodStart")
        return self
