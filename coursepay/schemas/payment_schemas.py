# coursepay/schemas/payment_schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional

from coursepay.constants.payment_status import PaymentMethod


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(alias="itemId")
    payment_method: PaymentMethod = Field(default=PaymentMethod.card, alias="paymentMethod")


class PaymentStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_id: Optional[str] = Field(default=None, alias="paymentId")
    order_id: Optional[str] = Field(default=None, alias="orderId")


class PaymobWebhook(BaseModel):
    type: str
    obj: Dict[str, Any] = {}
