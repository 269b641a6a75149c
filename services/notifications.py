import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.notification import Notification
from tasks.realtime_tasks import publish_notification_task

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("order", "account", "promotion")


def serialize(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "read": notification.read,
        "data": notification.data,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }


def publish(notification: Notification, event: str = "INSERT") -> None:
    try:
        publish_notification_task.delay(notification.user_id, event, serialize(notification))
    except Exception as exc:
        logger.warning("Could not queue realtime event for notification %s: %s", notification.id, exc)


def notify(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    type: str = "order",
) -> Optional[Notification]:
    """
    Insert one notification row for ``user_id`` and fan it out in real time.

    Best effort: failures are rolled back and logged, never raised, so callers
    can use this after committing their own change.
    """
    if type not in NOTIFICATION_TYPES:
        type = "order"
    notification = Notification(user_id=user_id, type=type, title=title, message=message, data=data or {})
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to create notification for user %s: %s", user_id, exc)
        return None
    publish(notification)
    return notification
