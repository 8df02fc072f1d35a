from typing import List, Optional

import bleach
from pydantic import BaseModel, ConfigDict, Field, field_validator

from shanthi_store.models.order import OrderStatus


def _clean_text(value: Optional[str], limit: int) -> Optional[str]:
    if value is None:
        return value
    sanitized = bleach.clean(value, tags=[], attributes={}, strip=True).strip()
    if len(sanitized) > limit:
        raise ValueError(f"Value too long (max {limit} chars)")
    return sanitized


class CustomerInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=15)
    billing_address: Optional[str] = Field(default=None, alias="billingAddress")
    delivery_address: str = Field(..., min_length=1, alias="deliveryAddress")

    @field_validator("name", "billing_address", "delivery_address")
    @classmethod
    def sanitize(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value, 500)


class OrderItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    weight: Optional[str] = None
    purity: Optional[str] = None


class OrderCreate(BaseModel):
    customer: CustomerInfo
    items: List[OrderItemIn] = Field(..., min_length=1)
    total: float = Field(..., ge=0)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None

    @field_validator("note")
    @classmethod
    def sanitize_note(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value, 500)
