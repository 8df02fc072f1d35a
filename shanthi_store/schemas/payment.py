from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shanthi_store.schemas.order import OrderCreate


class GatewayOrderCreate(BaseModel):
    amount: float = Field(..., ge=1)
    currency: str = "INR"
    receipt: Optional[str] = Field(default=None, max_length=40)


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_id: str = Field(default="", alias="paymentId")
    order_id: str = Field(default="", alias="orderId")
    signature: str = ""
    order_data: OrderCreate = Field(..., alias="orderData")


class PhonePeCheckoutRequest(OrderCreate):
    model_config = ConfigDict(populate_by_name=True)

    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")
