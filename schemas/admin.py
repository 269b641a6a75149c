from datetime import date
from typing import List

from pydantic import Field

from schemas.common import CamelModel
from schemas.vendor import VendorOut


class AdminVendorOut(VendorOut):
    order_count: int = 0
    owner_phone: str | None = None


class VendorRejection(CamelModel):
    reason: str | None = Field(default=None, max_length=500)


class DailyOrders(CamelModel):
    date: date
    count: int


class TopVendor(CamelModel):
    vendor_id: str
    name: str
    revenue: float
    order_count: int


class AdminDashboard(CamelModel):
    total_orders: int
    today_orders: int
    total_vendors: int
    pending_approvals: int
    total_revenue: float
    orders_last_7_days: List[DailyOrders]
    top_vendors: List[TopVendor]


class CashbackConfigOut(CamelModel):
    percentage: float
    is_active: bool


class CashbackConfigUpdate(CamelModel):
    percentage: float = Field(ge=0, le=100)
    is_active: bool = True

