from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.common import CamelModel, Money
from schemas.product import ProductOut


class VendorOnboarding(CamelModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = Field(default=None, max_length=2000)
    image: Optional[str] = None
    city: str = Field(min_length=1, max_length=100)
    store_address: Optional[str] = Field(default=None, max_length=500)
    store_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    store_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    max_delivery_radius: int = Field(default=10, ge=1, le=100)
    intercity_enabled: bool = False


class VendorStatusUpdate(CamelModel):
    is_online: bool


class VendorOut(CamelModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    city: str
    store_address: Optional[str] = None
    store_lat: Optional[float] = None
    store_lng: Optional[float] = None
    max_delivery_radius: int
    intercity_enabled: bool
    is_online: bool
    status: str
    commission_rate: float
    rating: float
    created_at: datetime


class VendorDetail(VendorOut):
    products: List[ProductOut] = []


class DeliveryEstimate(CamelModel):
    distance_km: float
    duration_minutes: int
    source: str  # "google" or "haversine"
    delivery_type: str
    serviceable: bool
    max_delivery_radius: int


class VendorDashboard(CamelModel):
    today_orders: int
    pending_orders: int
    active_orders: int
    total_revenue: Money
    overdue_accept: int
    overdue_mockups: int
    is_online: bool
    status: str


class VendorEarnings(CamelModel):
    total_earnings: Money
    period_earnings: Money
    pending_earnings: Money
    completed_orders: int
    period: int


class PayoutTransaction(CamelModel):
    id: str
    order_number: str
    amount: Money
    order_total: Money
    status: str  # "settled" once delivered, else "pending"
    settled_at: Optional[datetime] = None
    created_at: datetime


class PayoutSummary(CamelModel):
    total_settled: Money
    total_pending: Money
    transaction_count: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class VendorPayouts(CamelModel):
    transactions: List[PayoutTransaction]
    summary: PayoutSummary
    pagination: Pagination
