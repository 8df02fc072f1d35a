from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CartItemCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    image: str = Field(..., min_length=1, max_length=500)
    quantity: int = Field(default=1, ge=1)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    weight: Optional[str] = None
    purity: Optional[str] = None


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)
