import logging
from datetime import datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from core.auth import get_current_user, get_current_vendor, require_roles
from core.db import get_db
from core.errors import AppError, NotFound, ServiceUnavailable, ValidationFailed
from models.order import Order, PAYMENT_COMPLETED, PAYMENT_PENDING
from models.product import Product
from models.user import User, ROLE_ADMIN, ROLE_VENDOR
from models.vendor import Vendor, VENDOR_PENDING
from schemas.order import (
    MockupImageUploaded,
    MockupUpload,
    OrderList,
    RequestDetails,
    TransitionResult,
    VendorOrderDetail,
)
from schemas.product import ProductCreate, ProductOut, ProductStatusUpdate, ProductUpdate
from schemas.vendor import (
    VendorDashboard,
    VendorEarnings,
    VendorOnboarding,
    VendorOut,
    VendorPayouts,
    VendorStatusUpdate,
)
from services import order_lifecycle as lifecycle
from services import order_status as sm
from services.cloudinary import ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES, cloudinary_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vendor", tags=["vendor"])

vendor_actor = require_roles(ROLE_VENDOR)


class VendorAlreadyExists(AppError):
    status_code = 409
    code = "VENDOR_EXISTS"
    message = "Vendor profile already exists"


def _own_product(db: Session, vendor: Vendor, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.vendor_id == vendor.id).one_or_none()
    if not product:
        raise NotFound("Product not found")
    return product


def _own_order(db: Session, vendor: Vendor, order_id: str) -> Order:
    # Another vendor's order is reported as missing on reads
    order = db.query(Order).filter(Order.id == order_id, Order.vendor_id == vendor.id).one_or_none()
    if not order:
        raise NotFound("Order not found", code="ORDER_NOT_FOUND")
    return order


def _result(order: Order, message: str) -> dict:
    return {"success": True, "message": message, "order": order}


def _product_fields(data, exclude_unset: bool = False) -> dict:
    fields = data.model_dump(mode="json", exclude_unset=exclude_unset)
    if data.customization_schema is not None:
        fields["customization_schema"] = data.customization_schema.model_dump(by_alias=True)
    return fields


# Profile

@router.post("/onboarding", response_model=VendorOut, status_code=201)
def onboard(data: VendorOnboarding, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if db.query(Vendor).filter(Vendor.user_id == current_user.id).one_or_none():
        raise VendorAlreadyExists()
    vendor = Vendor(user_id=current_user.id, status=VENDOR_PENDING, **data.model_dump())
    db.add(vendor)
    if current_user.role != ROLE_ADMIN:
        current_user.role = ROLE_VENDOR
    db.commit()
    db.refresh(vendor)
    logger.info("Vendor %s onboarded by user %s, awaiting approval", vendor.id, current_user.id)
    return vendor


@router.get("/profile", response_model=VendorOut)
def get_profile(vendor: Vendor = Depends(get_current_vendor)):
    return vendor


@router.patch("/status", response_model=VendorOut)
def update_status(data: VendorStatusUpdate, vendor: Vendor = Depends(get_current_vendor), db: Session = Depends(get_db)):
    vendor.is_online = data.is_online
    db.commit()
    db.refresh(vendor)
    return vendor


# Products

@router.get("/products", response_model=List[ProductOut])
def list_products(vendor: Vendor = Depends(get_current_vendor), db: Session = Depends(get_db)):
    return db.query(Product).filter(Product.vendor_id == vendor.id).order_by(Product.created_at.desc()).all()


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(data: ProductCreate, vendor: Vendor = Depends(get_current_vendor), db: Session = Depends(get_db)):
    product = Product(vendor_id=vendor.id, **_product_fields(data))
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    data: ProductUpdate,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    product = _own_product(db, vendor, product_id)
    for field, value in _product_fields(data, exclude_unset=True).items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


@router.patch("/products/{product_id}/status", response_model=ProductOut)
def update_product_status(
    product_id: str,
    data: ProductStatusUpdate,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    product = _own_product(db, vendor, product_id)
    product.is_active = data.is_active
    db.commit()
    db.refresh(product)
    return product


# Dashboard

@router.get("/dashboard", response_model=VendorDashboard)
def dashboard(vendor: Vendor = Depends(get_current_vendor), db: Session = Depends(get_db)):
    now = datetime.utcnow()
    start_of_day = datetime.combine(now.date(), time.min)
    orders = db.query(Order).filter(Order.vendor_id == vendor.id)

    revenue = _vendor_amount_sum(db, vendor, Order.payment_status == PAYMENT_COMPLETED)
    return VendorDashboard(
        today_orders=orders.filter(Order.created_at >= start_of_day).count(),
        pending_orders=orders.filter(Order.status == sm.PENDING).count(),
        active_orders=orders.filter(Order.status.notin_([sm.PENDING, *sm.TERMINAL])).count(),
        total_revenue=revenue,
        overdue_accept=orders.filter(Order.status == sm.PENDING, Order.accept_deadline < now).count(),
        overdue_mockups=orders.filter(Order.status == sm.PERSONALIZING, Order.mockup_sla < now).count(),
        is_online=vendor.is_online,
        status=vendor.status,
    )


# Earnings

def _vendor_amount_sum(db: Session, vendor: Vendor, *conditions):
    return (
        db.query(func.coalesce(func.sum(Order.vendor_amount), 0))
        .filter(Order.vendor_id == vendor.id, *conditions)
        .scalar()
    ) or 0


@router.get("/earnings", response_model=VendorEarnings)
def earnings(
    period: int = Query(default=30, ge=1, le=365),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """Vendor share of paid orders, overall and over the last ``period`` days."""
    period_start = datetime.utcnow() - timedelta(days=period)
    paid = Order.payment_status == PAYMENT_COMPLETED
    completed_orders = (
        db.query(Order)
        .filter(Order.vendor_id == vendor.id, paid, Order.created_at >= period_start)
        .count()
    )
    return VendorEarnings(
        total_earnings=_vendor_amount_sum(db, vendor, paid),
        period_earnings=_vendor_amount_sum(db, vendor, paid, Order.created_at >= period_start),
        pending_earnings=_vendor_amount_sum(db, vendor, Order.payment_status == PAYMENT_PENDING),
        completed_orders=completed_orders,
        period=period,
    )


@router.get("/payouts", response_model=VendorPayouts)
def payouts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    # A paid order settles to the vendor once it is delivered
    paid = db.query(Order).filter(Order.vendor_id == vendor.id, Order.payment_status == PAYMENT_COMPLETED)
    total = paid.count()
    rows = (
        paid.order_by(Order.delivered_at.is_(None), Order.delivered_at.desc(), Order.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    settled, pending = (
        db.query(
            func.coalesce(func.sum(case((Order.delivered_at.isnot(None), Order.vendor_amount), else_=0)), 0),
            func.coalesce(func.sum(case((Order.delivered_at.is_(None), Order.vendor_amount), else_=0)), 0),
        )
        .filter(Order.vendor_id == vendor.id, Order.payment_status == PAYMENT_COMPLETED)
        .one()
    )
    transactions = [
        {
            "id": order.id,
            "order_number": order.order_number,
            "amount": order.vendor_amount or 0,
            "order_total": order.total,
            "status": "settled" if order.delivered_at else "pending",
            "settled_at": order.delivered_at,
            "created_at": order.created_at,
        }
        for order in rows
    ]
    return {
        "transactions": transactions,
        "summary": {"total_settled": settled or 0, "total_pending": pending or 0, "transaction_count": total},
        "pagination": {"page": page, "limit": limit, "total": total, "total_pages": -(-total // limit)},
    }


# Orders

@router.get("/orders", response_model=OrderList)
def list_orders(
    filter: str = Query(default="all"),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """``filter`` is ``all``, ``today`` or an order status."""
    query = db.query(Order).filter(Order.vendor_id == vendor.id)
    if filter == "today":
        query = query.filter(Order.created_at >= datetime.combine(datetime.utcnow().date(), time.min))
    elif filter != "all":
        if filter not in sm.STATUSES:
            raise ValidationFailed("Invalid filter", details=[{"path": "filter", "message": f"Unknown status {filter}"}])
        query = query.filter(Order.status == filter)
    return {"orders": query.order_by(Order.created_at.desc()).all()}


@router.get("/orders/{order_id}", response_model=VendorOrderDetail)
def get_order(order_id: str, vendor: Vendor = Depends(get_current_vendor), db: Session = Depends(get_db)):
    order = _own_order(db, vendor, order_id)
    names = dict(
        db.query(Product.id, Product.name).filter(Product.id.in_(order.product_ids())).all()
    )
    detail = VendorOrderDetail.model_validate(order)
    detail.product_names = names
    return detail


@router.post("/orders/{order_id}/accept", response_model=TransitionResult)
def accept_order(order_id: str, current_user: User = Depends(vendor_actor), db: Session = Depends(get_db)):
    order = lifecycle.accept_order(db, order_id, current_user)
    return _result(order, "Order accepted")


@router.post("/orders/{order_id}/request-details", response_model=TransitionResult)
def request_details(
    order_id: str,
    data: Optional[RequestDetails] = None,
    current_user: User = Depends(vendor_actor),
    db: Session = Depends(get_db),
):
    order = lifecycle.request_details(db, order_id, current_user, data.message if data else None)
    return _result(order, "Customer has been asked for details")


@router.post("/orders/{order_id}/mockup", response_model=TransitionResult)
def upload_mockup(
    order_id: str,
    data: MockupUpload,
    current_user: User = Depends(vendor_actor),
    db: Session = Depends(get_db),
):
    images = data.model_dump(mode="json")["mockup_images"]
    order = lifecycle.upload_mockup(db, order_id, current_user, images)
    return _result(order, "Mockups uploaded")


@router.post("/orders/{order_id}/mockup/upload", response_model=MockupImageUploaded, status_code=201)
async def upload_mockup_image(
    order_id: str,
    product_id: str = Form(alias="productId"),
    file: UploadFile = File(...),
    current_user: User = Depends(vendor_actor),
    db: Session = Depends(get_db),
):
    """Host one mockup image and return its URL for a following ``/mockup`` call."""
    order = lifecycle.load_order(db, order_id)
    lifecycle.authorize(db, order, current_user, sm.UPLOAD_MOCKUP)
    if product_id not in order.product_ids():
        raise ValidationFailed("Product is not part of this order")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailed("Invalid file type. Only JPEG, PNG and WebP images are allowed.")
    file_data = await file.read()
    if len(file_data) > MAX_IMAGE_BYTES:
        raise ValidationFailed("File too large. Maximum size is 5MB.")

    ok, url, error = cloudinary_service.upload_mockup_image(file_data, order.id, product_id)
    if not ok:
        raise ServiceUnavailable(f"Failed to upload image: {error}", code="UPLOAD_FAILED")
    return MockupImageUploaded(url=url, product_id=product_id)


@router.post("/orders/{order_id}/craft", response_model=TransitionResult)
def start_crafting(order_id: str, current_user: User = Depends(vendor_actor), db: Session = Depends(get_db)):
    order = lifecycle.start_crafting(db, order_id, current_user)
    return _result(order, "Crafting started")


@router.post("/orders/{order_id}/ready", response_model=TransitionResult)
def mark_ready(order_id: str, current_user: User = Depends(vendor_actor), db: Session = Depends(get_db)):
    order = lifecycle.mark_ready(db, order_id, current_user)
    return _result(order, "Order marked as ready")
