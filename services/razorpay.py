import hashlib
import hmac
import logging
from decimal import Decimal
from typing import Any, Dict

from core.config import settings
from services.http import http_session

logger = logging.getLogger(__name__)

RAZORPAY_BASE_URL = "https://api.razorpay.com/v1"


def _auth() -> tuple[str, str]:
    return settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET


def is_configured() -> bool:
    return bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET)


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: str) -> bool:
    """Constant-time check of ``X-Razorpay-Signature`` against the raw request body."""
    secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not secret or not signature:
        return False
    return hmac.compare_digest(_hmac_hex(secret, raw_body), signature)


def verify_payment_signature(gateway_order_id: str, payment_id: str, signature: str) -> bool:
    """Checkout callback signature: HMAC of ``"{order_id}|{payment_id}"`` with the key secret."""
    secret = settings.RAZORPAY_KEY_SECRET
    if not secret or not signature:
        logger.error("Razorpay key secret not configured")
        return False
    expected = _hmac_hex(secret, f"{gateway_order_id}|{payment_id}".encode("utf-8"))
    return hmac.compare_digest(expected, signature)


def to_paise(amount: Decimal | float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1")))


def create_order(amount: Decimal | float, receipt: str, notes: Dict[str, Any] | None = None, currency: str = "INR") -> Dict[str, Any]:
    payload = {
        "amount": to_paise(amount),
        "currency": currency,
        "receipt": receipt,
        "notes": notes or {},
    }
    resp = http_session.post(
        f"{RAZORPAY_BASE_URL}/orders", json=payload, auth=_auth(), timeout=settings.HTTP_TIMEOUT_SECONDS
    )
    resp.raise_for_status()
    return resp.json()



def fetch_payment(payment_id: str) -> Dict[str, Any]:
    resp = http_session.get(
        f"{RAZORPAY_BASE_URL}/payments/{payment_id}", auth=_auth(), timeout=settings.HTTP_TIMEOUT_SECONDS
    )
    resp.raise_for_status()
    return resp.json()
