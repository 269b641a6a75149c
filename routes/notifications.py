from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.db import get_db
from core.errors import NotFound, ValidationFailed
from models.notification import Notification
from models.user import User
from schemas.common import MessageOut
from schemas.notification import NotificationList, NotificationUpdate
from services.notifications import publish

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Notification).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()
    unread_count = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.read.is_(False))
        .count()
    )
    return {"notifications": notifications, "unreadCount": unread_count}


@router.patch("", response_model=MessageOut)
def mark_read(data: NotificationUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if data.mark_all_as_read:
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == current_user.id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session="fetch")
        )
        db.commit()
        return MessageOut(message=f"Marked {updated} notifications as read")

    if not data.notification_id:
        raise ValidationFailed("notificationId or markAllAsRead is required")
    notification = (
        db.query(Notification)
        .filter(Notification.id == data.notification_id, Notification.user_id == current_user.id)
        .one_or_none()
    )
    if not notification:
        raise NotFound("Notification not found")
    notification.read = True
    db.commit()
    publish(notification, event="UPDATE")
    return MessageOut(message="Notification marked as read")
