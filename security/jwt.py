from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from core.config import settings


def _encode(payload: Dict[str, Any], secret: str, minutes: int) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=minutes)
    to_encode = {"iat": int(now.timestamp()), "exp": int(exp.timestamp()), **payload}
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALG)


def create_access_token(sub: str, role: str | None = None) -> str:
    payload: Dict[str, Any] = {"sub": sub, "type": "access"}
    if role:
        payload["role"] = role
    return _encode(payload, settings.JWT_SECRET, settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_refresh_token(sub: str) -> str:
    return _encode({"sub": sub, "type": "refresh"}, settings.REFRESH_SECRET, settings.REFRESH_TOKEN_EXPIRE_MINUTES)


def issue_token_pair(user) -> Dict[str, str]:
    return {
        "access_token": create_access_token(str(user.id), user.role),
        "refresh_token": create_refresh_token(str(user.id)),
        "token_type": "bearer",
    }


def decode_access(token: str) -> Dict[str, Any]:
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def decode_refresh(token: str) -> Dict[str, Any]:
    payload = jwt.decode(token, settings.REFRESH_SECRET, algorithms=[settings.JWT_ALG])
    if payload.get("type") != "refresh":
        raise jwt.InvalidTokenError("Not a refresh token")
    return payload
