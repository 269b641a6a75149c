from typing import Callable, Optional

import jwt
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import AuthenticationRequired, AuthorizationDenied, NotFound
from models.user import User, ROLE_ADMIN, ROLE_VENDOR
from models.vendor import Vendor
from security import jwt as jwt_utils


def get_current_user(
    db: Session = Depends(get_db), authorization: Optional[str] = Header(default=None, alias="Authorization")
) -> User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationRequired()
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt_utils.decode_access(token)
    except jwt.PyJWTError:
        raise AuthenticationRequired("Invalid or expired token", code="INVALID_TOKEN")
    user = db.query(User).filter(User.id == payload.get("sub")).one_or_none()
    if not user or not user.is_active:
        raise AuthenticationRequired()
    return user


def require_roles(*roles: str) -> Callable[..., User]:
    """Dependency factory: the caller must hold one of ``roles``; admins always pass."""

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != ROLE_ADMIN and current_user.role not in roles:
            raise AuthorizationDenied()
        return current_user

    return _checker


require_admin = require_roles(ROLE_ADMIN)


def get_current_vendor(
    current_user: User = Depends(require_roles(ROLE_VENDOR)), db: Session = Depends(get_db)
) -> Vendor:
    vendor = db.query(Vendor).filter(Vendor.user_id == current_user.id).one_or_none()
    if not vendor:
        raise NotFound("Vendor profile not found", code="VENDOR_NOT_FOUND")
    return vendor
