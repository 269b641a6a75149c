import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from core.db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

CRITICAL_SETTINGS = ("DATABASE_URL", "JWT_SECRET", "REFRESH_SECRET", "REDIS_URL")
OPTIONAL_SETTINGS = (
    "RAZORPAY_KEY_ID",
    "RAZORPAY_KEY_SECRET",
    "RAZORPAY_WEBHOOK_SECRET",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "SMTP_PASSWORD",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_MAPS_API_KEY",
    "CLOUDINARY_CLOUD_NAME",
)


def _presence(names) -> dict:
    return {name: {"set": bool(getattr(settings, name, None))} for name in names}


@router.get("/supabase")
@router.get("/database")
def database_health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected"},
        )
    return {"status": "healthy", "database": "connected"}


@router.get("/config")
def config_health():
    critical = _presence(CRITICAL_SETTINGS)
    optional = _presence(OPTIONAL_SETTINGS)
    missing = [name for name, entry in critical.items() if not entry["set"]]
    recommendations = [f"Set {name}" for name, entry in optional.items() if not entry["set"]]
    return {
        "healthy": not missing,
        "environment": {"critical": critical, "optional": optional},
        "issues": [f"{name} is not set" for name in missing],
        "recommendations": recommendations,
    }
