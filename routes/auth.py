import logging

import jwt
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.db import get_db
from core.errors import AuthenticationRequired, AuthorizationDenied, ValidationFailed
from core.config import settings
from models.user import User, ROLE_CUSTOMER
from schemas.auth import (
    SendOtpRequest,
    VerifyOtpRequest,
    SyncUserRequest,
    AdminLoginRequest,
    RefreshTokenRequest,
    TokenPair,
    OtpSentResponse,
)
from schemas.users import AuthResponse, UserOut
from security.password import check_admin_password
from security import jwt as jwt_utils
from services.messaging import mask_phone
from services.otp import send_otp, verify_otp as check_otp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp", response_model=OtpSentResponse)
def send_otp_code(data: SendOtpRequest):
    send_otp(data.phone)
    return OtpSentResponse(expires_in=settings.OTP_TTL_SECONDS)


@router.post("/verify-otp", response_model=AuthResponse)
def verify_otp(data: VerifyOtpRequest, db: Session = Depends(get_db)):
    if not check_otp(data.phone, data.code):
        raise ValidationFailed("Invalid or expired code", code="INVALID_OTP")

    user = db.query(User).filter(User.phone == data.phone).one_or_none()
    is_new = user is None
    if is_new:
        user = User(phone=data.phone, role=ROLE_CUSTOMER)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s for %s", user.id, mask_phone(data.phone))
    elif not user.is_active:
        raise AuthorizationDenied("Account is disabled", code="ACCOUNT_DISABLED")

    return AuthResponse(**jwt_utils.issue_token_pair(user), user=UserOut.model_validate(user), is_new_user=is_new)


@router.post("/sync-user", response_model=UserOut)
def sync_user(
    data: SyncUserRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the caller's profile fields after sign-in."""
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("email"):
        update_data["email"] = update_data["email"].lower()
    for field, value in update_data.items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/refresh-token", response_model=TokenPair)
def refresh_token(data: RefreshTokenRequest, db: Session = Depends(get_db)):
    try:
        payload = jwt_utils.decode_refresh(data.refresh_token)
    except jwt.PyJWTError:
        raise AuthenticationRequired("Invalid refresh token", code="INVALID_TOKEN")
    user = db.query(User).filter(User.id == payload.get("sub")).one_or_none()
    if not user or not user.is_active:
        raise AuthenticationRequired("Invalid refresh token", code="INVALID_TOKEN")
    return TokenPair(**jwt_utils.issue_token_pair(user))


@router.post("/admin/login", response_model=TokenPair)
def admin_login(data: AdminLoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email.lower()).one_or_none()
    ok, new_hash = check_admin_password(data.password, user.password_hash if user else None)
    if not ok:
        raise AuthenticationRequired("Invalid credentials", code="INVALID_CREDENTIALS")
    if new_hash:
        user.password_hash = new_hash
        db.commit()
    if not user.is_admin:
        raise AuthorizationDenied()
    return TokenPair(**jwt_utils.issue_token_pair(user))
