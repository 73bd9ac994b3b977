"""District / store directory tables.

Stores reference their district by id only; the link is advisory (no database
foreign key) so that deleting a district can unassign its stores instead of
failing, and historical movements keep their ids after a store is removed.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from sqlmodel import Field, SQLModel


def new_id() -> str:
    return str(uuid4())


class District(SQLModel, table=True):
    """Top-level geographic grouping."""

    __tablename__ = "districts"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True, description="District name")


class Store(SQLModel, table=True):
    """Retail outlet; belongs to at most one district."""

    __tablename__ = "stores"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True, description="Store name")
    district_id: Optional[str] = Field(default=None, index=True, description="Owning district (nullable)")
    address: Optional[str] = Field(default=None, description="Street address")
