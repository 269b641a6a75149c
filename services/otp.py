import json
import logging
import secrets
from datetime import datetime

from core.config import settings
from core.errors import RateLimited
from core.redis_client import redis_client
from services.messaging import mask_phone
from tasks.messaging_tasks import send_sms_task

logger = logging.getLogger(__name__)

OTP_PREFIX = "otp:"
OTP_LAST_SENT_PREFIX = "otp:last:"


def _generate_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def send_otp(phone: str) -> str:
    """Generate a code for ``phone``, store it in Redis and queue the SMS."""
    last_key = f"{OTP_LAST_SENT_PREFIX}{phone}"
    if settings.OTP_RESEND_INTERVAL_SECONDS > 0 and redis_client.exists(last_key):
        ttl = redis_client.ttl(last_key)
        wait = ttl if ttl and ttl > 0 else settings.OTP_RESEND_INTERVAL_SECONDS
        raise RateLimited(f"Please wait {wait} seconds before requesting a new code", details={"retryAfter": wait})

    code = _generate_code()
    otp_data = {
        "code": code,
        "phone": phone,
        "created_at": datetime.utcnow().isoformat(),
        "attempts": 0,
    }
    redis_client.setex(f"{OTP_PREFIX}{phone}", settings.OTP_TTL_SECONDS, json.dumps(otp_data))
    if settings.OTP_RESEND_INTERVAL_SECONDS > 0:
        redis_client.setex(last_key, settings.OTP_RESEND_INTERVAL_SECONDS, "1")

    minutes = max(settings.OTP_TTL_SECONDS // 60, 1)
    try:
        send_sms_task.delay(phone, f"{code} is your Wyshkit verification code. It expires in {minutes} minutes.")
    except Exception as exc:
        logger.error("Could not queue OTP SMS for %s: %s", mask_phone(phone), exc)
    logger.info("OTP issued for %s", mask_phone(phone))
    return code


def verify_otp(phone: str, code: str) -> bool:
    """Check ``code`` for ``phone``; the code is burned on success or after too many attempts."""
    otp_key = f"{OTP_PREFIX}{phone}"
    otp_data_str = redis_client.get(otp_key)
    if not otp_data_str:
        return False

    try:
        otp_data = json.loads(otp_data_str)
    except json.JSONDecodeError:
        redis_client.delete(otp_key)
        return False

    if otp_data.get("attempts", 0) >= settings.OTP_MAX_ATTEMPTS:
        redis_client.delete(otp_key)
        return False

    if not secrets.compare_digest(str(otp_data.get("code", "")), code):
        otp_data["attempts"] = otp_data.get("attempts", 0) + 1
        ttl = redis_client.ttl(otp_key)
        redis_client.setex(otp_key, ttl if ttl and ttl > 0 else settings.OTP_TTL_SECONDS, json.dumps(otp_data))
        return False

    redis_client.delete(otp_key)
    return True

