import logging
import re
from typing import Any, Dict

from core.config import settings
from services.http import http_session

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class MessagingError(Exception):
    pass


def mask_phone(phone: str) -> str:
    return re.sub(r"\d(?=\d{4})", "*", phone)


def is_configured() -> bool:
    return bool(settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN)


def _post_message(form: Dict[str, str]) -> Dict[str, Any]:
    if not is_configured():
        raise MessagingError("Twilio Account SID and Auth Token are required")
    resp = http_session.post(
        TWILIO_MESSAGES_URL.format(sid=settings.TWILIO_ACCOUNT_SID),
        data=form,
        auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    if not resp.ok:
        try:
            message = resp.json().get("message")
        except ValueError:
            message = None
        raise MessagingError(message or f"Twilio API error: {resp.status_code}")
    return resp.json()


def send_sms(to: str, body: str) -> str:
    """Send an SMS and return the Twilio message SID."""
    if not body or not body.strip():
        raise MessagingError("Message body is required")
    if not settings.TWILIO_FROM_NUMBER:
        raise MessagingError("Twilio sender number is required")
    data = _post_message({"To": to, "From": settings.TWILIO_FROM_NUMBER, "Body": body})
    logger.info("SMS sent to %s (sid=%s)", mask_phone(to), data.get("sid"))
    return data.get("sid")


def send_whatsapp(to: str, body: str) -> str:
    if not settings.TWILIO_WHATSAPP_NUMBER:
        raise MessagingError("Twilio WhatsApp number is required")
    sender = settings.TWILIO_WHATSAPP_NUMBER
    if not sender.startswith("whatsapp:"):
        sender = f"whatsapp:{sender}"
    recipient = to if to.startswith("whatsapp:") else f"whatsapp:{to}"
    data = _post_message({"To": recipient, "From": sender, "Body": body})
    logger.info("WhatsApp message sent to %s (sid=%s)", mask_phone(to), data.get("sid"))
    return data.get("sid")
