"""Movement fact table.

One row per quantity of a product changing hands at a district / store:
sales, returns, exchanges, bonuses, write-offs and pure inventory transfers.
Rows are append-only; the API offers no update or delete path.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Float, Index
from sqlmodel import Field, SQLModel

from app.models.geo import new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Movement(SQLModel, table=True):
    """Immutable ledger fact."""

    __tablename__ = "movements"
    __table_args__ = (
        Index("ix_movements_date_product", "date", "product_id"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    date: dt.date = Field(index=True, description="Business date of the movement")

    district_id: str = Field(index=True, description="District the goods moved in")
    store_id: Optional[str] = Field(default=None, index=True, description="NULL = district-level shipment")
    product_id: str = Field(index=True)

    operation_type: str = Field(description="sale / return / exchange / bonus / writeoff / load / transfer_in / transfer_out")
    payment_type: str = Field(default="cash", description="cash / kaspi / card / transfer / credit")

    quantity: int = Field(description="Pieces")
    unit_price: float = Field(sa_column=Column(Float, nullable=False), description="Price snapshot per piece")
    comment: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
