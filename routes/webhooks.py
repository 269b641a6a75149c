import json
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import AuthenticationRequired, ValidationFailed
from models.order import Order, PAYMENT_COMPLETED, PAYMENT_FAILED
from schemas.payment import WebhookAck
from services import razorpay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

# event -> payment_status
PAYMENT_EVENTS = {
    "payment.captured": PAYMENT_COMPLETED,
    "payment.failed": PAYMENT_FAILED,
}


def _payment_entity(payload: dict) -> dict:
    return ((payload.get("payload") or {}).get("payment") or {}).get("entity") or {}


@router.post("/razorpay", response_model=WebhookAck)
async def razorpay_webhook(request: Request, db: Session = Depends(get_db)):
    raw_body = await request.body()
    signature = request.headers.get("x-razorpay-signature")
    if not signature:
        raise ValidationFailed("Missing signature", code="MISSING_SIGNATURE")
    if not razorpay.verify_webhook_signature(raw_body, signature):
        logger.warning("Rejected Razorpay webhook with invalid signature")
        raise AuthenticationRequired("Invalid signature", code="INVALID_SIGNATURE")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise ValidationFailed("Invalid payload", code="INVALID_PAYLOAD")

    event = payload.get("event")
    target_status = PAYMENT_EVENTS.get(event)
    if target_status is None:
        logger.info("Ignoring Razorpay event %s", event)
        return WebhookAck(event=event)

    entity = _payment_entity(payload)
    order_id = (entity.get("notes") or {}).get("order_id")
    order = db.query(Order).filter(Order.id == order_id).one_or_none() if order_id else None
    if not order:
        logger.warning("Razorpay %s for unknown order %s", event, order_id)
        return WebhookAck(event=event)

    order.payment_status = target_status
    order.payment_id = entity.get("id")
    db.commit()
    logger.info("Order %s payment %s via webhook", order.order_number, target_status)
    return WebhookAck(event=event)
