import json
import logging

import redis

from core.celery import celery_app
from core.redis_client import redis_client

logger = logging.getLogger(__name__)


def notification_channel(user_id: str) -> str:
    return f"notifications:{user_id}"


@celery_app.task(bind=True, max_retries=3)
def publish_notification_task(self, user_id: str, event: str, notification: dict):
    """Push a notification row change to subscribers of the recipient's channel."""
    message = json.dumps({"event": event, "notification": notification}, default=str)
    try:
        receivers = redis_client.publish(notification_channel(user_id), message)
    except redis.RedisError as exc:
        logger.warning("Realtime publish for user %s failed: %s", user_id, exc)
        raise self.retry(exc=exc, countdown=min(2 ** self.request.retries, 60))
    return {"status": "published", "receivers": receivers}
