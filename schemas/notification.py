from datetime import datetime
from typing import Any, Dict, List, Optional

from schemas.common import CamelModel


class NotificationOut(CamelModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    data: Optional[Dict[str, Any]] = None
    created_at: datetime


class NotificationList(CamelModel):
    notifications: List[NotificationOut]
    unread_count: int


class NotificationUpdate(CamelModel):
    notification_id: Optional[str] = None
    mark_all_as_read: bool = False
