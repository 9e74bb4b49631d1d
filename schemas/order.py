from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class OrderItemOut(BaseModel):
    product_id: int = Field(alias="productId")
    quantity: int
    name: str
    price: Decimal

    class Config:
        populate_by_name = True


class OrderOut(BaseModel):
    id: Optional[int] = None
    total: Decimal
    # Passed through as-is; the lookup decides whether it is a usable key
    user_id: Optional[Any] = Field(default=None, alias="userId")
    status: Optional[str] = None
    items: List[OrderItemOut] = []

    class Config:
        populate_by_name = True


class OrderEnvelope(BaseModel):
    order: OrderOut
