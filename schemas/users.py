from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from schemas.common import CamelModel


class UserOut(CamelModel):
    id: str
    phone: str
    email: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    role: str
    created_at: datetime


class AuthResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut
    is_new_user: bool = False


ADDRESS_PHONE = r"^\+?[1-9]\d{1,14}$"
PINCODE = r"^\d{6}$"


class AddressCreate(CamelModel):
    recipient_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(pattern=ADDRESS_PHONE)
    address: str = Field(min_length=1, max_length=500)
    city: str = Field(min_length=1, max_length=100)
    pincode: str = Field(pattern=PINCODE)
    lat: Optional[float] = None
    lng: Optional[float] = None
    label: Literal["Home", "Work", "Other"] = "Home"
    is_default: bool = False


class AddressUpdate(CamelModel):
    recipient_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=ADDRESS_PHONE)
    address: Optional[str] = Field(default=None, min_length=1, max_length=500)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    pincode: Optional[str] = Field(default=None, pattern=PINCODE)
    lat: Optional[float] = None
    lng: Optional[float] = None
    label: Optional[Literal["Home", "Work", "Other"]] = None
    is_default: Optional[bool] = None


class AddressOut(CamelModel):
    id: str
    user_id: str
    recipient_name: str
    phone: str
    address: str
    city: str
    pincode: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    label: str
    is_default: bool
    created_at: datetime
    updated_at: datetime


class WalletTransactionOut(CamelModel):
    id: str
    type: str
    amount: float
    description: Optional[str] = None
    order_id: Optional[str] = None
    created_at: datetime


class WalletOut(CamelModel):
    balance: float
    transactions: List[WalletTransactionOut] = []
