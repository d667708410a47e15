"""
In-memory notification store.
Newest-first list with an eagerly consistent unread count.
"""
from typing import Callable, List, Optional

from ..schemas.notifications import Notification, NotificationSeverity, NotificationType
from .events import EventEmitter, Listener


SEVERITY_BY_LEVEL = {"high": "critical", "medium": "warning", "low": "info"}


def map_severity(level: Optional[str]) -> NotificationSeverity:
    """Map a low/medium/high level onto a notification severity (unknown -> info)."""
    return SEVERITY_BY_LEVEL.get(level or "", "info")  # type: ignore[return-value]


class NotificationStore:
    def __init__(self) -> None:
        self._notifications: List[Notification] = []
        self.events = EventEmitter("notifications")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def notifications(self) -> List[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications if not n.read)

    def add(
        self,
        title: str,
        message: str,
        type: NotificationType,
        severity: NotificationSeverity,
        related_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            title=title,
            message=message,
            type=type,
            severity=severity,
            related_id=related_id,
            user_id=user_id,
        )
        self._notifications.insert(0, notification)
        self._emit_changed()
        return notification

    def get(self, notification_id: str) -> Optional[Notification]:
        return next((n for n in self._notifications if n.id == notification_id), None)

    def list(
        self,
        limit: Optional[int] = None,
        unread_only: bool = False,
        user_id: Optional[str] = None,
    ) -> List[Notification]:
        result = []
        for n in self._notifications:
            if unread_only and n.read:
                continue
            # Broadcast notifications (no recipient) are visible to everyone
            if user_id is not None and n.user_id not in (None, user_id):
                continue
            result.append(n)
        return result[:limit] if limit else result

    def mark_read(self, notification_id: str) -> bool:
        notification = self.get(notification_id)
        if notification is None:
            return False
        notification.read = True
        self._emit_changed()
        return True

    def mark_all_read(self) -> int:
        changed = 0
        for n in self._notifications:
            if not n.read:
                n.read = True
                changed += 1
        self._emit_changed()
        return changed

    def _emit_changed(self) -> None:
        self.events.emit("notifications", self.notifications)
        self.events.emit("unread_count", self.unread_count)
