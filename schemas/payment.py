from typing import Optional

from pydantic import BaseModel

from schemas.common import CamelModel


class PaymentVerifyRequest(BaseModel):
    razorpay_payment_id: str
    razorpay_order_id: str
    razorpay_signature: str
    orderId: str


class PaymentVerifyResponse(CamelModel):
    success: bool = True
    order_id: str
    order_number: str
    payment_status: str
    message: str = "Payment verified successfully"


class WebhookAck(CamelModel):
    received: bool = True
    event: Optional[str] = None
