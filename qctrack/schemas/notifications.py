from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .base import new_id, utcnow


NotificationType = Literal["deficiency", "inspection", "task", "system"]
NotificationSeverity = Literal["info", "warning", "critical"]


class Notification(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    message: str
    type: NotificationType
    severity: NotificationSeverity
    timestamp: datetime = Field(default_factory=utcnow)
    read: bool = False
    related_id: Optional[str] = None
    user_id: Optional[str] = None  # recipient; None means broadcast


class NotificationCreate(BaseModel):
    title: str
    message: str
    type: NotificationType = "system"
    severity: NotificationSeverity = "info"
    related_id: Optional[str] = None
    user_id: Optional[str] = None


class UnreadCount(BaseModel):
    unread: int
    total: int
