from fastapi import APIRouter, Request, Depends
from sqlalchemy.orm import Session
from authlib.integrations.starlette_client import OAuth, OAuthError

from core.config import settings
from core.db import get_db
from core.errors import AuthenticationRequired, ServiceUnavailable, ValidationFailed
from models.user import User, ROLE_CUSTOMER
from schemas.auth import TokenPair
from security import jwt as jwt_utils

router = APIRouter(prefix="/auth/google", tags=["oauth"])

oauth = OAuth()
oauth.register(
    name="google",
    client_id=settings.GOOGLE_CLIENT_ID,
    client_secret=settings.GOOGLE_CLIENT_SECRET,
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
    client_kwargs={"scope": "openid email profile"},
)


def _require_configured() -> None:
    if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
        raise ServiceUnavailable("Google OAuth not configured", code="OAUTH_NOT_CONFIGURED")


@router.get("/login")
async def google_login(request: Request):
    _require_configured()
    return await oauth.google.authorize_redirect(request, settings.GOOGLE_REDIRECT_URI)


@router.get("/callback", response_model=TokenPair)
async def google_callback(request: Request, db: Session = Depends(get_db)):
    _require_configured()
    try:
        token = await oauth.google.authorize_access_token(request)
    except OAuthError as exc:
        raise AuthenticationRequired(f"Google sign-in failed: {exc.error}", code="OAUTH_FAILED")
    userinfo = token.get("userinfo")
    if not userinfo:
        resp = await oauth.google.get("https://openidconnect.googleapis.com/v1/userinfo", token=token)
        userinfo = resp.json()
    email = (userinfo.get("email") or "").lower()
    if not email:
        raise ValidationFailed("Email not provided by Google")

    user = db.query(User).filter(User.email == email).one_or_none()
    if not user:
        # Google accounts have no phone; keep the unique column populated with a stable placeholder
        user = User(
            phone=f"google:{userinfo.get('sub')}",
            email=email,
            name=userinfo.get("name"),
            role=ROLE_CUSTOMER,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    return TokenPair(**jwt_utils.issue_token_pair(user))
