import logging

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.db import get_db
from core.errors import NotFound, ServiceUnavailable, ValidationFailed
from models.order import Order, PAYMENT_COMPLETED
from models.user import User
from schemas.payment import PaymentVerifyRequest, PaymentVerifyResponse
from services import razorpay
from services.email import send_payment_confirmation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["payments"])


@router.post("/verify", response_model=PaymentVerifyResponse)
def verify_payment(data: PaymentVerifyRequest, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not razorpay.verify_payment_signature(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature):
        logger.error("Invalid payment signature for order %s", data.orderId)
        raise ValidationFailed("Invalid payment signature", code="INVALID_SIGNATURE")

    order = (
        db.query(Order)
        .filter(Order.id == data.orderId, Order.customer_id == current_user.id)
        .one_or_none()
    )
    if not order:
        raise NotFound("Order not found", code="ORDER_NOT_FOUND")
    if order.gateway_order_id and order.gateway_order_id != data.razorpay_order_id:
        raise ValidationFailed("Payment does not belong to this order", code="INVALID_SIGNATURE")

    try:
        payment = razorpay.fetch_payment(data.razorpay_payment_id)
    except requests.RequestException as exc:
        logger.error("Failed to fetch Razorpay payment %s: %s", data.razorpay_payment_id, exc)
        raise ServiceUnavailable("Failed to verify payment with Razorpay", code="RAZORPAY_VERIFY_FAILED")

    already_completed = order.payment_status == PAYMENT_COMPLETED
    # Only a capture moves the status; a failure recorded by the webhook stays
    if payment.get("status") == "captured":
        order.payment_status = PAYMENT_COMPLETED
    order.payment_id = data.razorpay_payment_id
    db.commit()
    logger.info("Payment %s verified for order %s (%s)", order.payment_id, order.order_number, order.payment_status)

    if order.payment_status == PAYMENT_COMPLETED and not already_completed:
        send_payment_confirmation(order, current_user)
    return PaymentVerifyResponse(
        order_id=order.id,
        order_number=order.order_number,
        payment_status=order.payment_status,
    )
