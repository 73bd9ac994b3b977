from sqlalchemy import Column, Float
from sqlmodel import Field, SQLModel

from app.models.geo import new_id


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True)
    # point prices; movements snapshot unit_price, so edits never rewrite history
    cost_price: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))
    sale_price: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))
