"""
Order transition operations.

Each operation follows the same sequence:

1. load the order (NotFound)
2. check the caller may perform the transition on this order (AuthorizationDenied)
3. apply the transition through the state machine (PreconditionFailed, nothing written)
4. apply transition-specific changes and commit
5. notify the counter-party, best effort

Steps 1-4 run in the caller's session; a failed notification never undoes
the committed status change.
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from core.errors import AuthorizationDenied, NotFound, ValidationFailed
from models.order import Order
from models.user import User, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_DELIVERY, ROLE_VENDOR
from models.vendor import Vendor
from services import order_status as sm
from services import wallet as wallet_service
from services.email import send_order_status_update
from services.notifications import notify
from tasks.messaging_tasks import send_whatsapp_task

logger = logging.getLogger(__name__)

ACCEPT_WINDOW = timedelta(minutes=5)
MOCKUP_SLA = timedelta(hours=2)


def load_order(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.id == order_id).one_or_none()
    if not order:
        raise NotFound("Order not found", code="ORDER_NOT_FOUND")
    return order


def vendor_for_user(db: Session, user: User) -> Optional[Vendor]:
    return db.query(Vendor).filter(Vendor.user_id == user.id).one_or_none()


def can_view(db: Session, order: Order, user: User) -> bool:
    if user.role == ROLE_ADMIN or order.customer_id == user.id:
        return True
    vendor = vendor_for_user(db, user)
    return vendor is not None and vendor.id == order.vendor_id


def authorize(db: Session, order: Order, user: User, transition: sm.Transition) -> None:
    """Admins act on any order; otherwise the caller must be a party the transition names."""
    if user.role == ROLE_ADMIN:
        return
    if ROLE_CUSTOMER in transition.actors and order.customer_id == user.id:
        return
    if ROLE_VENDOR in transition.actors and user.role == ROLE_VENDOR:
        vendor = vendor_for_user(db, user)
        if vendor and vendor.id == order.vendor_id:
            return
    if ROLE_DELIVERY in transition.actors and user.role == ROLE_DELIVERY:
        return
    raise AuthorizationDenied()


def _vendor_user_id(db: Session, order: Order) -> Optional[str]:
    vendor = db.query(Vendor).filter(Vendor.id == order.vendor_id).one_or_none()
    return vendor.user_id if vendor else None


def _order_data(order: Order, **extra) -> Dict[str, Any]:
    return {"orderId": order.id, "orderNumber": order.order_number, "status": order.status, **extra}


def _run(
    db: Session,
    order_id: str,
    user: User,
    transition: sm.Transition,
    changes: Optional[Callable[[Order], None]] = None,
    check: Optional[Callable[[Order], None]] = None,
) -> Order:
    order = load_order(db, order_id)
    authorize(db, order, user, transition)
    if check:
        check(order)
    sm.apply(order, transition)
    if changes:
        changes(order)
    db.commit()
    logger.info("Order %s: %s -> %s by %s", order.order_number, transition.name, order.status, user.id)
    return order


def _notify_customer(db: Session, order: Order, title: str, message: str, whatsapp: bool = False) -> None:
    notify(db, order.customer_id, title, message, _order_data(order))
    if whatsapp:
        _send_whatsapp(order, message)


def _send_whatsapp(order: Order, message: str) -> None:
    phone = order.customer.phone if order.customer else None
    # Google sign-ins carry a placeholder instead of a phone number
    if not phone or not phone.startswith("+"):
        return
    try:
        send_whatsapp_task.delay(phone, message)
    except Exception as exc:
        logger.error("Could not queue WhatsApp update for order %s: %s", order.order_number, exc)


def _notify_vendor(db: Session, order: Order, title: str, message: str) -> None:
    vendor_user_id = _vendor_user_id(db, order)
    if vendor_user_id:
        notify(db, vendor_user_id, title, message, _order_data(order, vendorId=order.vendor_id))


def _check_products(order: Order, product_ids) -> None:
    known = set(order.product_ids())
    unknown = [pid for pid in product_ids if pid not in known]
    if unknown:
        raise ValidationFailed(
            "Product is not part of this order",
            details=[{"path": "productId", "message": f"Unknown product {pid}"} for pid in unknown],
        )


def accept_order(db: Session, order_id: str, user: User) -> Order:
    def changes(order: Order) -> None:
        order.mockup_sla = datetime.utcnow() + MOCKUP_SLA

    order = _run(db, order_id, user, sm.ACCEPT, changes)
    _notify_customer(
        db, order, "Order Accepted",
        f"Vendor has accepted your order #{order.order_number} and is preparing it.",
    )
    return order


def request_details(db: Session, order_id: str, user: User, message: Optional[str] = None) -> Order:
    order = _run(db, order_id, user, sm.REQUEST_DETAILS)
    body = f"Vendor needs more details to personalize your order #{order.order_number}."
    if message:
        body = f"{body} {message}"
    _notify_customer(db, order, "Details Needed", body)
    return order


def customize_order(db: Session, order_id: str, user: User, customizations: List[Dict[str, Any]]) -> Order:
    """Merge ``{productId, text, photo, giftMessage}`` payloads into the matching order items."""
    by_product = {c["productId"]: c for c in customizations}

    def check(order: Order) -> None:
        _check_products(order, by_product.keys())

    def changes(order: Order) -> None:
        items = []
        for item in order.items:
            item = dict(item)
            incoming = by_product.get(item.get("productId"))
            if incoming:
                merged = dict(item.get("customization") or {})
                merged.update({k: v for k, v in incoming.items() if k != "productId" and v is not None})
                item["customization"] = merged
            items.append(item)
        order.items = items

    order = _run(db, order_id, user, sm.CUSTOMIZE, changes, check)
    _notify_vendor(
        db, order, "Customization Details Received",
        f"Customer has added personalization details for order #{order.order_number}.",
    )
    return order


def upload_mockup(db: Session, order_id: str, user: User, mockup_images: Dict[str, List[str]]) -> Order:
    def check(order: Order) -> None:
        _check_products(order, mockup_images.keys())

    def changes(order: Order) -> None:
        merged = {pid: list(urls) for pid, urls in (order.mockup_images or {}).items()}
        for pid, urls in mockup_images.items():
            merged.setdefault(pid, [])
            merged[pid].extend(url for url in urls if url not in merged[pid])
        order.mockup_images = merged

    order = _run(db, order_id, user, sm.UPLOAD_MOCKUP, changes, check)
    _notify_customer(
        db, order, "Mockups Ready",
        f"Vendor has uploaded mockups for your order #{order.order_number}. Please review them.",
        whatsapp=True,
    )
    return order


def approve_mockup(db: Session, order_id: str, user: User) -> Order:
    def changes(order: Order) -> None:
        order.mockup_approved_at = datetime.utcnow()
        order.revision_request = None

    order = _run(db, order_id, user, sm.APPROVE_MOCKUP, changes)
    _notify_vendor(
        db, order, "Mockup Approved",
        f"Customer approved the mockups for order #{order.order_number}. You can start crafting.",
    )
    return order


def request_revision(db: Session, order_id: str, user: User, product_id: Optional[str], feedback: str) -> Order:
    if not feedback or not feedback.strip():
        raise ValidationFailed("Feedback is required", details=[{"path": "feedback", "message": "Feedback is required"}])

    def check(order: Order) -> None:
        if product_id:
            _check_products(order, [product_id])

    def changes(order: Order) -> None:
        order.revision_request = {
            "productId": product_id,
            "feedback": feedback.strip(),
            "requestedAt": datetime.utcnow().isoformat(),
        }

    order = _run(db, order_id, user, sm.REQUEST_REVISION, changes, check)
    _notify_vendor(
        db, order, "Revision Requested",
        f"Customer requested changes to the mockups for order #{order.order_number}: {feedback.strip()}",
    )
    return order


def start_crafting(db: Session, order_id: str, user: User) -> Order:
    order = _run(db, order_id, user, sm.START_CRAFTING)
    _notify_customer(
        db, order, "Crafting Started",
        f"Vendor has started crafting your order #{order.order_number}.",
    )
    return order


def mark_ready(db: Session, order_id: str, user: User) -> Order:
    order = _run(db, order_id, user, sm.MARK_READY)
    _notify_customer(
        db, order, "Order Ready!",
        f"Your order #{order.order_number} is ready for pickup and will be out for delivery shortly.",
        whatsapp=True,
    )
    return order


def dispatch_order(db: Session, order_id: str, user: User) -> Order:
    order = _run(db, order_id, user, sm.DISPATCH)
    _notify_customer(
        db, order, "Out for Delivery",
        f"Your order #{order.order_number} is on its way.",
    )
    return order


def mark_delivered(db: Session, order_id: str, user: User) -> Order:
    def changes(order: Order) -> None:
        order.delivered_at = datetime.utcnow()
        wallet_service.credit_order_cashback(db, order)

    order = _run(db, order_id, user, sm.MARK_DELIVERED, changes)
    message = f"Your order #{order.order_number} has been delivered."
    if order.cashback_credited and Decimal(str(order.cashback_credited)) > 0:
        message = f"{message} Rs. {order.cashback_credited} cashback has been added to your wallet."
    _notify_customer(db, order, "Order Delivered", message, whatsapp=True)
    if order.customer:
        send_order_status_update(order, order.customer, "Delivered", message)
    return order


def cancel_order(db: Session, order_id: str, user: User, reason: Optional[str] = None) -> Order:
    def changes(order: Order) -> None:
        used = Decimal(str(order.cashback_used or 0))
        if used > 0:
            wallet_service.credit(
                db, order.customer_id, used, f"Refund of cashback for cancelled order #{order.order_number}", order.id
            )

    order = _run(db, order_id, user, sm.CANCEL, changes)
    suffix = f" Reason: {reason}" if reason else ""
    if user.id == order.customer_id:
        _notify_vendor(db, order, "Order Cancelled", f"Customer cancelled order #{order.order_number}.{suffix}")
    else:
        _notify_customer(db, order, "Order Cancelled", f"Your order #{order.order_number} has been cancelled.{suffix}")
        _notify_vendor(db, order, "Order Cancelled", f"Order #{order.order_number} has been cancelled by Wyshkit.{suffix}")
    return order
