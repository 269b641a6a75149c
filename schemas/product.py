from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from schemas.common import CamelModel


class CustomizationSchema(CamelModel):
    requires_text: bool = False
    requires_photo: bool = False
    max_text_length: Optional[int] = Field(default=None, ge=1, le=500)


class ProductCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: float = Field(gt=0)
    category: str = Field(min_length=1, max_length=100)
    image: Optional[str] = None
    images: Optional[List[str]] = None
    variants: Optional[List[Dict[str, Any]]] = None
    add_ons: Optional[List[Dict[str, Any]]] = None
    customization_schema: Optional[CustomizationSchema] = None
    is_personalizable: bool = False
    mockup_sla_hours: Optional[int] = Field(default=None, ge=1, le=168)


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    image: Optional[str] = None
    images: Optional[List[str]] = None
    variants: Optional[List[Dict[str, Any]]] = None
    add_ons: Optional[List[Dict[str, Any]]] = None
    customization_schema: Optional[CustomizationSchema] = None
    is_personalizable: Optional[bool] = None
    mockup_sla_hours: Optional[int] = Field(default=None, ge=1, le=168)


class ProductStatusUpdate(CamelModel):
    is_active: bool


class ProductOut(CamelModel):
    id: str
    vendor_id: str
    name: str
    description: Optional[str] = None
    price: float
    category: str
    image: Optional[str] = None
    images: Optional[List[str]] = None
    variants: Optional[List[Dict[str, Any]]] = None
    add_ons: Optional[List[Dict[str, Any]]] = None
    customization_schema: Optional[Dict[str, Any]] = None
    is_personalizable: bool
    mockup_sla_hours: Optional[int] = None
    is_active: bool
    created_at: datetime


class ProductList(CamelModel):
    products: List[ProductOut]
    total: int
    limit: int
    offset: int


class ReviewCreate(CamelModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=500)


class ReviewOut(CamelModel):
    id: str
    product_id: str
    user_id: str
    user_name: Optional[str] = None
    order_id: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ReviewList(CamelModel):
    reviews: List[ReviewOut]
    average_rating: float
    total_reviews: int


class CanReviewOut(CamelModel):
    can_review: bool
    has_reviewed: bool
    order_id: Optional[str] = None
