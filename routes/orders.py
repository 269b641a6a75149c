import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.config import settings
from core.db import get_db
from core.errors import NotFound, ValidationFailed
from models.order import Order, PAYMENT_PENDING
from models.product import Product
from models.user import User
from models.vendor import Vendor, VENDOR_APPROVED
from schemas.order import (
    CancelRequest,
    CustomizeRequest,
    MockupOut,
    MockupReview,
    OrderCreate,
    OrderList,
    OrderOut,
    TransitionResult,
)
from services import order_lifecycle as lifecycle
from services import razorpay
from services import wallet as wallet_service
from services.email import send_order_confirmation
from services.notifications import notify
from services.order_numbers import next_order_number
from services.order_status import INITIAL

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

CENTS = Decimal("0.01")


def _to_decimal(value: float | int | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value)).quantize(CENTS, ROUND_HALF_UP)


def _visible_order(db: Session, order_id: str, user: User) -> Order:
    order = db.query(Order).filter(Order.id == order_id).one_or_none()
    if not order or not lifecycle.can_view(db, order, user):
        raise NotFound("Order not found", code="ORDER_NOT_FOUND")
    return order


def _create_gateway_order(db: Session, order: Order, user: User) -> None:
    """Register the order with Razorpay; checkout still succeeds when this fails."""
    if not razorpay.is_configured():
        return
    try:
        gateway_order = razorpay.create_order(
            order.total,
            receipt=order.order_number,
            notes={"order_id": order.id, "order_number": order.order_number, "customer_id": user.id},
        )
    except requests.RequestException as exc:
        logger.error("Razorpay order creation failed for %s: %s", order.order_number, exc)
        return
    order.gateway_order_id = gateway_order.get("id")
    db.commit()


@router.post("", response_model=OrderOut, status_code=201)
def create_order(data: OrderCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    vendor = db.query(Vendor).filter(Vendor.id == data.vendor_id).one_or_none()
    if not vendor or not vendor.is_active:
        raise NotFound("Vendor not found", code="VENDOR_NOT_FOUND")
    if vendor.status != VENDOR_APPROVED:
        raise ValidationFailed("Vendor is not accepting orders", code="VENDOR_NOT_APPROVED")

    product_ids = {item.product_id for item in data.items}
    products = {
        p.id: p
        for p in db.query(Product).filter(
            Product.vendor_id == vendor.id, Product.id.in_(product_ids), Product.is_active.is_(True)
        )
    }
    missing = product_ids - products.keys()
    if missing:
        raise ValidationFailed(
            "One or more products are unavailable from this vendor",
            details=[{"path": "items", "message": f"Unknown product {pid}"} for pid in sorted(missing)],
        )

    item_total = sum((_to_decimal(item.price) * item.quantity for item in data.items), Decimal("0"))
    delivery_fee = _to_decimal(data.delivery_fee)
    platform_fee = _to_decimal(settings.DEFAULT_PLATFORM_FEE if data.platform_fee is None else data.platform_fee)
    cashback_used = _to_decimal(data.cashback_used)
    total = item_total + delivery_fee + platform_fee - cashback_used
    if total < 0:
        raise ValidationFailed(
            "Order total cannot be negative",
            details=[{"path": "cashbackUsed", "message": "Cashback exceeds order value"}],
        )

    commission = (item_total * _to_decimal(vendor.commission_rate) / 100).quantize(CENTS, ROUND_HALF_UP)
    now = datetime.utcnow()
    order = Order(
        order_number=next_order_number(db),
        customer_id=current_user.id,
        vendor_id=vendor.id,
        status=INITIAL,
        items=[item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in data.items],
        item_total=item_total,
        delivery_fee=delivery_fee,
        platform_fee=platform_fee,
        cashback_used=cashback_used,
        total=total,
        commission_amount=commission,
        vendor_amount=item_total - commission,
        delivery_type=data.delivery_type,
        delivery_address=data.delivery_address.model_dump(mode="json"),
        gstin=data.gstin,
        payment_status=PAYMENT_PENDING,
        accept_deadline=now + lifecycle.ACCEPT_WINDOW,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    db.flush()
    if cashback_used > 0:
        wallet_service.debit(db, current_user.id, cashback_used, f"Cashback used on order #{order.order_number}", order.id)
    db.commit()
    db.refresh(order)
    logger.info("Order %s created for vendor %s (total %s)", order.order_number, vendor.id, total)

    _create_gateway_order(db, order, current_user)
    notify(
        db, vendor.user_id, "New Order",
        f"You have a new order #{order.order_number}. Please accept it within 5 minutes.",
        {"orderId": order.id, "orderNumber": order.order_number},
    )
    send_order_confirmation(order, current_user)
    return order


@router.get("", response_model=OrderList)
def list_orders(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    orders = db.query(Order).filter(Order.customer_id == current_user.id).order_by(Order.created_at.desc()).all()
    return {"orders": orders}


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _visible_order(db, order_id, current_user)


@router.post("/{order_id}/customize", response_model=TransitionResult)
def customize_order(
    order_id: str,
    data: CustomizeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    customizations = [c.model_dump(mode="json", by_alias=True, exclude_none=True) for c in data.customizations]
    order = lifecycle.customize_order(db, order_id, current_user, customizations)
    return {"message": "Customization saved", "order": order}


@router.get("/{order_id}/mockup", response_model=MockupOut)
def get_mockup(order_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = _visible_order(db, order_id, current_user)
    return MockupOut(
        order_id=order.id,
        order_number=order.order_number,
        status=order.status,
        mockup_images=order.mockup_images or {},
        mockup_approved_at=order.mockup_approved_at,
        revision_request=order.revision_request,
        mockup_sla=order.mockup_sla,
    )


@router.post("/{order_id}/mockup/approve", response_model=TransitionResult)
def review_mockup(
    order_id: str,
    data: MockupReview | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Approve the uploaded mockups, or send them back with ``action: "revision"``."""
    if data and data.action == "revision":
        order = lifecycle.request_revision(db, order_id, current_user, data.product_id, data.feedback or "")
        return {"message": "Revision requested", "order": order}
    order = lifecycle.approve_mockup(db, order_id, current_user)
    return {"message": "Mockups approved", "order": order}


@router.post("/{order_id}/cancel", response_model=TransitionResult)
def cancel_order(
    order_id: str,
    data: CancelRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = lifecycle.cancel_order(db, order_id, current_user, data.reason if data else None)
    return {"message": "Order cancelled", "order": order}
