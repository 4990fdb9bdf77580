from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, Field, PlainSerializer, StrictInt
from pydantic.alias_generators import to_camel

# Exact in memory, a plain JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# JSON integers only: "101" or true are rejected, not coerced
Identifier = Annotated[StrictInt, Field(gt=0)]

class OrderCreate(BaseModel):
    user_id: Identifier
    product_ids: List[Identifier] = Field(min_length=1)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    product_id: int

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class OrderResponse(BaseModel):
    id: int
    user_id: int
    total_amount: Money
    order_date: datetime
    order_items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class ProductPayload(BaseModel):
    """Body returned by the product service for GET /api/products/{id}."""
    product_id: Optional[Union[str, int]] = Field(default=None, alias="_id")
    name: str = ""
    price: Decimal = Field(ge=0)
