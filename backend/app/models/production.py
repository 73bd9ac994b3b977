import datetime as dt
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from app.models.geo import new_id
from app.models.movement import utcnow


class ProductionBatch(SQLModel, table=True):
    """Daily output of one product; several batches per day are summed."""

    __tablename__ = "production_batches"

    id: str = Field(default_factory=new_id, primary_key=True)
    date: dt.date = Field(index=True)
    product_id: str = Field(index=True)
    produced_qty: int = Field(description="Pieces produced")
    bonus_pool_qty: int = Field(default=0, description="Pieces set aside for promotional use")
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
