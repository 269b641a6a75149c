from decimal import Decimal, ROUND_HALF_UP
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.db import get_db
from core.errors import AuthorizationDenied, NotFound
from models.order import Order
from models.product import Product
from models.review import ProductReview
from models.user import User
from models.vendor import Vendor, VENDOR_APPROVED
from schemas.product import ProductList, ProductOut, ReviewCreate, ReviewList, ReviewOut, CanReviewOut
from services.order_status import DELIVERED

router = APIRouter(prefix="/products", tags=["products"])

SORT_COLUMNS = {
    "price": Product.price,
    "name": Product.name,
    "created_at": Product.created_at,
    "createdAt": Product.created_at,
}


def _visible_products(db: Session):
    return (
        db.query(Product)
        .join(Vendor, Vendor.id == Product.vendor_id)
        .filter(Product.is_active.is_(True), Vendor.status == VENDOR_APPROVED, Vendor.is_active.is_(True))
    )


def _get_visible_product(db: Session, product_id: str) -> Product:
    product = _visible_products(db).filter(Product.id == product_id).one_or_none()
    if not product:
        raise NotFound("Product not found")
    return product


def _delivered_order_with(db: Session, user_id: str, product_id: str) -> Optional[Order]:
    orders = (
        db.query(Order)
        .filter(Order.customer_id == user_id, Order.status == DELIVERED)
        .order_by(Order.delivered_at.desc())
        .all()
    )
    for order in orders:
        if product_id in order.product_ids():
            return order
    return None


def _review_out(review: ProductReview) -> ReviewOut:
    out = ReviewOut.model_validate(review)
    out.user_name = review.user.name if review.user else None
    return out


@router.get("", response_model=ProductList)
def list_products(
    category: Optional[str] = Query(default=None, max_length=100),
    vendor_id: Optional[str] = Query(default=None, alias="vendorId"),
    search: Optional[str] = Query(default=None, max_length=200),
    sort_by: Literal["price", "name", "created_at", "createdAt"] = Query(default="created_at", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    query = _visible_products(db)
    if category:
        query = query.filter(Product.category == category)
    if vendor_id:
        query = query.filter(Product.vendor_id == vendor_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

    total = query.count()
    column = SORT_COLUMNS[sort_by]
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc())
    products = query.offset(offset).limit(limit).all()
    return {"products": products, "total": total, "limit": limit, "offset": offset}


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return _get_visible_product(db, product_id)


@router.get("/{product_id}/reviews", response_model=ReviewList)
def list_reviews(product_id: str, db: Session = Depends(get_db)):
    _get_visible_product(db, product_id)
    reviews = (
        db.query(ProductReview)
        .filter(ProductReview.product_id == product_id)
        .order_by(ProductReview.created_at.desc())
        .limit(50)
        .all()
    )
    count, average = (
        db.query(func.count(ProductReview.id), func.avg(ProductReview.rating))
        .filter(ProductReview.product_id == product_id)
        .one()
    )
    average_rating = float(Decimal(str(average or 0)).quantize(Decimal("0.1"), ROUND_HALF_UP))
    return ReviewList(
        reviews=[_review_out(r) for r in reviews],
        average_rating=average_rating,
        total_reviews=count,
    )


@router.post("/{product_id}/reviews", response_model=ReviewOut, status_code=201)
def create_review(
    product_id: str,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or update the caller's review; requires a delivered order containing the product."""
    _get_visible_product(db, product_id)
    order = _delivered_order_with(db, current_user.id, product_id)
    if not order:
        raise AuthorizationDenied("You can only review products from delivered orders", code="REVIEW_NOT_ALLOWED")

    review = (
        db.query(ProductReview)
        .filter(ProductReview.product_id == product_id, ProductReview.user_id == current_user.id)
        .one_or_none()
    )
    if review:
        review.rating = data.rating
        review.comment = data.comment
        review.order_id = order.id
    else:
        review = ProductReview(
            product_id=product_id,
            user_id=current_user.id,
            order_id=order.id,
            rating=data.rating,
            comment=data.comment,
        )
        db.add(review)
    db.commit()
    db.refresh(review)
    return _review_out(review)


@router.get("/{product_id}/can-review", response_model=CanReviewOut)
def can_review(product_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = _delivered_order_with(db, current_user.id, product_id)
    has_reviewed = (
        db.query(ProductReview)
        .filter(ProductReview.product_id == product_id, ProductReview.user_id == current_user.id)
        .count()
        > 0
    )
    return CanReviewOut(can_review=order is not None, has_reviewed=has_reviewed, order_id=order.id if order else None)
