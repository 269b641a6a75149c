import logging

import requests

from core.celery import celery_app
from core.config import settings
from services import messaging

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_sms_task(self, to: str, body: str):
    if settings.TESTING or not messaging.is_configured():
        logger.info("SMS to %s skipped (Twilio not configured)", messaging.mask_phone(to))
        return {"status": "skipped"}
    try:
        sid = messaging.send_sms(to, body)
        return {"status": "sent", "sid": sid}
    except (requests.RequestException, messaging.MessagingError) as exc:
        logger.warning("SMS to %s failed: %s", messaging.mask_phone(to), exc)
        raise self.retry(exc=exc, countdown=min(2 ** self.request.retries, 60))


@celery_app.task(bind=True, max_retries=3)
def send_whatsapp_task(self, to: str, body: str):
    if settings.TESTING or not messaging.is_configured():
        logger.info("WhatsApp message to %s skipped (Twilio not configured)", messaging.mask_phone(to))
        return {"status": "skipped"}
    try:
        sid = messaging.send_whatsapp(to, body)
        return {"status": "sent", "sid": sid}
    except (requests.RequestException, messaging.MessagingError) as exc:
        logger.warning("WhatsApp message to %s failed: %s", messaging.mask_phone(to), exc)
        raise self.retry(exc=exc, countdown=min(2 ** self.request.retries, 60))
