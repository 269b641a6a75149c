from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import NotFound, ValidationFailed
from models.product import Product
from models.vendor import Vendor, VENDOR_APPROVED
from schemas.product import ProductOut
from schemas.vendor import VendorOut, VendorDetail, DeliveryEstimate
from services.distance import calculate_distance, is_serviceable

router = APIRouter(prefix="/vendors", tags=["vendors"])


def _get_approved_vendor(db: Session, vendor_id: str) -> Vendor:
    vendor = (
        db.query(Vendor)
        .filter(Vendor.id == vendor_id, Vendor.status == VENDOR_APPROVED, Vendor.is_active.is_(True))
        .one_or_none()
    )
    if not vendor:
        raise NotFound("Vendor not found")
    return vendor


@router.get("", response_model=List[VendorOut])
def list_vendors(
    city: Optional[str] = Query(default=None, max_length=100),
    search: Optional[str] = Query(default=None, max_length=200),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    query = db.query(Vendor).filter(Vendor.status == VENDOR_APPROVED, Vendor.is_active.is_(True))
    if city:
        query = query.filter(Vendor.city.ilike(city))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Vendor.name.ilike(pattern), Vendor.description.ilike(pattern)))
    return query.order_by(Vendor.rating.desc(), Vendor.name).offset(offset).limit(limit).all()


@router.get("/{vendor_id}", response_model=VendorDetail)
def get_vendor(vendor_id: str, db: Session = Depends(get_db)):
    vendor = _get_approved_vendor(db, vendor_id)
    products = (
        db.query(Product)
        .filter(Product.vendor_id == vendor.id, Product.is_active.is_(True))
        .order_by(Product.created_at.desc())
        .all()
    )
    detail = VendorDetail.model_validate(vendor)
    detail.products = [ProductOut.model_validate(p) for p in products]
    return detail


@router.get("/{vendor_id}/delivery-estimate", response_model=DeliveryEstimate)
def delivery_estimate(
    vendor_id: str,
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    city: Optional[str] = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
):
    vendor = _get_approved_vendor(db, vendor_id)
    if vendor.store_lat is None or vendor.store_lng is None:
        raise ValidationFailed("Vendor has no pickup location", code="VENDOR_LOCATION_MISSING")

    result = calculate_distance(float(vendor.store_lat), float(vendor.store_lng), lat, lng)
    same_city = city is None or city.strip().lower() == vendor.city.strip().lower()
    return DeliveryEstimate(
        distance_km=result.distance_km,
        duration_minutes=result.duration_minutes,
        source=result.source,
        delivery_type="local" if same_city else "intercity",
        serviceable=is_serviceable(result.distance_km, vendor.max_delivery_radius, vendor.intercity_enabled, same_city),
        max_delivery_radius=vendor.max_delivery_radius,
    )
