"""Cash-side tables: store payments against credit debt, and revenue plans."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Float
from sqlmodel import Field, SQLModel

from app.models.geo import new_id
from app.models.movement import utcnow


class StorePayment(SQLModel, table=True):
    """Cash inflow from a store; append-only."""

    __tablename__ = "store_payments"

    id: str = Field(default_factory=new_id, primary_key=True)
    date: dt.date = Field(index=True)
    # NULL = resolve from the store's district when reporting
    district_id: Optional[str] = Field(default=None, index=True)
    store_id: str = Field(index=True)
    amount: float = Field(sa_column=Column(Float, nullable=False))
    method: str = Field(default="cash")
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class RevenuePlan(SQLModel, table=True):
    """Revenue target of a district over a period (inclusive bounds)."""

    __tablename__ = "revenue_plans"

    id: str = Field(default_factory=new_id, primary_key=True)
    district_id: str = Field(index=True)
    period_start: dt.date
    period_end: dt.date
    plan_revenue: float = Field(sa_column=Column(Float, nullable=False))
