from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from schemas.common import CamelModel


class SendOtpRequest(BaseModel):
    phone: str = Field(pattern=r"^\+\d{10,15}$", description="Phone number in international format, e.g. +919876543210")


class VerifyOtpRequest(BaseModel):
    phone: str = Field(pattern=r"^\+\d{10,15}$")
    code: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")


class SyncUserRequest(CamelModel):
    name: Optional[str] = Field(default=None, max_length=150)
    email: Optional[EmailStr] = None
    city: Optional[str] = Field(default=None, max_length=100)


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class OtpSentResponse(CamelModel):
    success: bool = True
    message: str = "OTP sent successfully"
    expires_in: int
