import logging
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.db import get_db
from core.errors import NotFound, PreconditionFailed, ValidationFailed
from models.order import Order, PAYMENT_COMPLETED
from models.vendor import Vendor, VENDOR_APPROVED, VENDOR_PENDING, VENDOR_REJECTED
from schemas.admin import (
    AdminDashboard,
    AdminVendorOut,
    CashbackConfigOut,
    CashbackConfigUpdate,
    VendorRejection,
)
from schemas.order import OrderList
from services.notifications import notify
from services.order_status import STATUSES
from services.wallet import get_cashback_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _vendor_out(vendor: Vendor, order_count: int) -> AdminVendorOut:
    out = AdminVendorOut.model_validate(vendor)
    out.order_count = order_count
    out.owner_phone = vendor.user.phone if vendor.user else None
    return out


def _get_vendor(db: Session, vendor_id: str) -> Vendor:
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).one_or_none()
    if not vendor:
        raise NotFound("Vendor not found", code="VENDOR_NOT_FOUND")
    return vendor


def _order_counts(db: Session, vendor_ids: List[str]) -> dict:
    if not vendor_ids:
        return {}
    rows = (
        db.query(Order.vendor_id, func.count(Order.id))
        .filter(Order.vendor_id.in_(vendor_ids))
        .group_by(Order.vendor_id)
        .all()
    )
    return dict(rows)


@router.get("/vendors", response_model=List[AdminVendorOut])
def list_vendors(
    status: Optional[Literal["pending", "approved", "rejected"]] = None,
    search: Optional[str] = Query(default=None, max_length=200),
    db: Session = Depends(get_db),
):
    query = db.query(Vendor)
    if status:
        query = query.filter(Vendor.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Vendor.name.ilike(pattern), Vendor.city.ilike(pattern)))
    vendors = query.order_by(Vendor.created_at.desc()).all()
    counts = _order_counts(db, [v.id for v in vendors])
    return [_vendor_out(v, counts.get(v.id, 0)) for v in vendors]


@router.get("/vendors/{vendor_id}", response_model=AdminVendorOut)
def get_vendor(vendor_id: str, db: Session = Depends(get_db)):
    vendor = _get_vendor(db, vendor_id)
    return _vendor_out(vendor, _order_counts(db, [vendor.id]).get(vendor.id, 0))


@router.patch("/vendors/{vendor_id}/approve", response_model=AdminVendorOut)
def approve_vendor(vendor_id: str, db: Session = Depends(get_db)):
    vendor = _get_vendor(db, vendor_id)
    if vendor.status == VENDOR_APPROVED:
        raise PreconditionFailed("Vendor already approved", code="ALREADY_APPROVED")
    vendor.status = VENDOR_APPROVED
    db.commit()
    logger.info("Vendor %s approved", vendor.id)
    notify(
        db, vendor.user_id, "Vendor Application Approved",
        f"Congratulations! {vendor.name} has been approved. You can now start receiving orders.",
        {"vendorId": vendor.id}, type="account",
    )
    return _vendor_out(vendor, _order_counts(db, [vendor.id]).get(vendor.id, 0))


@router.patch("/vendors/{vendor_id}/reject", response_model=AdminVendorOut)
def reject_vendor(vendor_id: str, data: Optional[VendorRejection] = None, db: Session = Depends(get_db)):
    vendor = _get_vendor(db, vendor_id)
    if vendor.status == VENDOR_REJECTED:
        raise PreconditionFailed("Vendor already rejected", code="ALREADY_REJECTED")
    vendor.status = VENDOR_REJECTED
    vendor.is_online = False
    db.commit()
    logger.info("Vendor %s rejected", vendor.id)
    reason = data.reason if data and data.reason else None
    message = f"Your vendor application for {vendor.name} was not approved."
    if reason:
        message = f"{message} Reason: {reason}"
    notify(db, vendor.user_id, "Vendor Application Rejected", message, {"vendorId": vendor.id, "reason": reason}, type="account")
    return _vendor_out(vendor, _order_counts(db, [vendor.id]).get(vendor.id, 0))


@router.get("/orders", response_model=OrderList)
def list_orders(
    status: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    query = db.query(Order)
    if status and status != "all":
        if status not in STATUSES:
            raise ValidationFailed("Invalid status", details=[{"path": "status", "message": f"Unknown status {status}"}])
        query = query.filter(Order.status == status)
    return {"orders": query.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()}


@router.get("/dashboard", response_model=AdminDashboard)
def dashboard(db: Session = Depends(get_db)):
    now = datetime.utcnow()
    start_of_day = datetime.combine(now.date(), time.min)
    week_start = datetime.combine((now - timedelta(days=6)).date(), time.min)

    total_revenue = (
        db.query(func.coalesce(func.sum(Order.total), 0)).filter(Order.payment_status == PAYMENT_COMPLETED).scalar()
    )

    per_day = {(week_start + timedelta(days=i)).date(): 0 for i in range(7)}
    for (created_at,) in db.query(Order.created_at).filter(Order.created_at >= week_start):
        per_day[created_at.date()] = per_day.get(created_at.date(), 0) + 1

    top_rows = (
        db.query(Vendor.id, Vendor.name, func.sum(Order.total), func.count(Order.id))
        .join(Order, Order.vendor_id == Vendor.id)
        .filter(Order.payment_status == PAYMENT_COMPLETED, Vendor.status == VENDOR_APPROVED)
        .group_by(Vendor.id, Vendor.name)
        .order_by(func.sum(Order.total).desc())
        .limit(3)
        .all()
    )

    return AdminDashboard(
        total_orders=db.query(Order).count(),
        today_orders=db.query(Order).filter(Order.created_at >= start_of_day).count(),
        total_vendors=db.query(Vendor).count(),
        pending_approvals=db.query(Vendor).filter(Vendor.status == VENDOR_PENDING).count(),
        total_revenue=float(total_revenue or 0),
        orders_last_7_days=[{"date": day, "count": count} for day, count in sorted(per_day.items())],
        top_vendors=[
            {"vendor_id": vid, "name": name, "revenue": float(revenue or 0), "order_count": count}
            for vid, name, revenue, count in top_rows
        ],
    )


@router.get("/cashback", response_model=CashbackConfigOut)
def get_cashback(db: Session = Depends(get_db)):
    config = get_cashback_config(db)
    db.commit()
    return config


@router.put("/cashback", response_model=CashbackConfigOut)
def update_cashback(data: CashbackConfigUpdate, db: Session = Depends(get_db)):
    config = get_cashback_config(db)
    config.percentage = Decimal(str(data.percentage))
    config.is_active = data.is_active
    db.commit()
    logger.info("Cashback set to %s%% (active=%s)", data.percentage, data.is_active)
    return config
