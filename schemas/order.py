from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, HttpUrl

from schemas.common import CamelModel, Money

GSTIN_PATTERN = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$"


class Customization(CamelModel):
    text: Optional[str] = Field(default=None, max_length=500)
    photo: Optional[HttpUrl] = None
    gift_message: Optional[str] = Field(default=None, max_length=500)


class OrderItemIn(CamelModel):
    product_id: str
    quantity: int = Field(ge=1)
    price: float = Field(gt=0)
    selected_variants: Optional[Dict[str, str]] = None
    selected_add_ons: Optional[List[str]] = None
    customization: Optional[Customization] = None


class DeliveryAddressIn(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(pattern=r"^[6-9]\d{9}$")
    address: str = Field(min_length=1, max_length=500)
    city: str = Field(min_length=1, max_length=100)
    pincode: str = Field(pattern=r"^\d{6}$")


class OrderCreate(CamelModel):
    vendor_id: str
    items: List[OrderItemIn] = Field(min_length=1)
    delivery_address: DeliveryAddressIn
    delivery_fee: float = Field(default=0, ge=0)
    platform_fee: Optional[float] = Field(default=None, ge=0)
    cashback_used: float = Field(default=0, ge=0)
    delivery_type: Literal["local", "intercity"] = "local"
    gstin: Optional[str] = Field(default=None, pattern=GSTIN_PATTERN)


class OrderOut(CamelModel):
    id: str
    order_number: str
    customer_id: str
    vendor_id: str
    status: str
    items: List[Dict[str, Any]]
    item_total: Money
    delivery_fee: Money
    platform_fee: Money
    cashback_used: Money
    total: Money
    delivery_type: str
    delivery_address: Dict[str, Any]
    gstin: Optional[str] = None
    payment_status: str
    payment_id: Optional[str] = None
    gateway_order_id: Optional[str] = None
    mockup_images: Optional[Dict[str, List[str]]] = None
    mockup_approved_at: Optional[datetime] = None
    revision_request: Optional[Dict[str, Any]] = None
    accept_deadline: Optional[datetime] = None
    mockup_sla: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class VendorOrderDetail(OrderOut):
    commission_amount: Optional[Money] = None
    vendor_amount: Optional[Money] = None
    product_names: Dict[str, str] = {}


class OrderList(CamelModel):
    orders: List[OrderOut]


class ItemCustomization(CamelModel):
    product_id: str
    text: Optional[str] = Field(default=None, max_length=500)
    photo: Optional[HttpUrl] = None
    gift_message: Optional[str] = Field(default=None, max_length=500)


class CustomizeRequest(CamelModel):
    customizations: List[ItemCustomization] = Field(min_length=1)


class MockupUpload(CamelModel):
    # {productId: [image urls]}
    mockup_images: Dict[str, List[HttpUrl]] = Field(min_length=1)


class MockupReview(CamelModel):
    action: Literal["approve", "revision"] = "approve"
    product_id: Optional[str] = None
    feedback: Optional[str] = Field(default=None, max_length=1000)


class MockupOut(CamelModel):
    order_id: str
    order_number: str
    status: str
    mockup_images: Dict[str, List[str]] = {}
    mockup_approved_at: Optional[datetime] = None
    revision_request: Optional[Dict[str, Any]] = None
    mockup_sla: Optional[datetime] = None


class MockupImageUploaded(CamelModel):
    url: str
    product_id: str


class RequestDetails(CamelModel):
    message: Optional[str] = Field(default=None, max_length=500)


class CancelRequest(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class TransitionResult(CamelModel):
    success: bool = True
    message: str
    order: OrderOut
