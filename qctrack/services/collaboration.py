"""
Comments, activity feed and presence.

Activities are kept newest-first and pruned by a recurring sweep once they are
older than the retention window.
"""
import asyncio
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Set

import structlog

from ..errors import NotFoundError, PrecheckFailedError
from ..schemas.base import as_utc, utcnow
from ..schemas.collaboration import Activity, ActivityType, Comment, Mention
from .events import EventEmitter, Listener
from .notifications import NotificationStore, map_severity


logger = structlog.get_logger(__name__)

MENTION_PATTERN = re.compile(r"@([\w-]+)")

NOTIFICATION_TYPE_BY_ACTIVITY = {
    "deficiency": "deficiency",
    "inspection": "inspection",
    "assignment": "task",
}


def extract_mentions(text: str) -> List[str]:
    """Unique `@name` tokens in order of first appearance."""
    return list(dict.fromkeys(MENTION_PATTERN.findall(text)))


def activity_title(activity: Activity) -> str:
    return {
        "status_change": "Status Updated",
        "assignment": "New Assignment",
        "photo": "Photo Added",
        "inspection": "Inspection Update",
        "deficiency": "Deficiency Update",
    }.get(activity.type, "New Activity")


def activity_message(activity: Activity) -> str:
    data = activity.data
    if activity.type == "status_change":
        return f"Status changed from {data.get('old_value')} to {data.get('new_value')}"
    if activity.type == "assignment":
        return f"Assigned to {data.get('assignee')}"
    if activity.type == "photo":
        return f"New photo added to {activity.entity_type}"
    if activity.type == "inspection":
        return f"Inspection {data.get('action')} at {data.get('location')}"
    if activity.type == "deficiency":
        return f"Deficiency {data.get('action')} with {data.get('severity')} severity"
    return f"New activity on {activity.entity_type}"


class CollaborationStore:
    def __init__(
        self,
        notifications: Optional[NotificationStore] = None,
        retention_days: int = 30,
        sweep_interval_seconds: float = 60 * 60 * 24,
    ) -> None:
        self._activities: List[Activity] = []
        self._comments: Dict[str, List[Comment]] = {}
        self._mentions: List[Mention] = []
        self._active_users: Set[str] = set()
        self._notifications = notifications
        self._retention = timedelta(days=retention_days)
        self._sweep_interval = sweep_interval_seconds
        self._sweeper: Optional["asyncio.Task[None]"] = None
        self.events = EventEmitter("collaboration")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def activities(self) -> List[Activity]:
        return list(self._activities)

    @property
    def mentions(self) -> List[Mention]:
        return list(self._mentions)

    # Comments

    def add_comment(
        self,
        entity_id: str,
        text: str,
        user_id: str,
        attachments: Optional[List[str]] = None,
        parent_id: Optional[str] = None,
        entity_type: str = "inspection",
    ) -> Comment:
        if parent_id is not None and self._find_comment(entity_id, parent_id) is None:
            raise NotFoundError("Comment", parent_id)

        comment = Comment(
            entity_id=entity_id,
            text=text,
            user_id=user_id,
            attachments=list(attachments or []),
            mentions=extract_mentions(text),
            parent_id=parent_id,
        )
        self._comments.setdefault(entity_id, []).append(comment)

        if comment.mentions:
            self._process_mentions(comment, comment.mentions)

        self.log_activity(
            type="comment",
            entity_id=entity_id,
            entity_type=entity_type,
            user_id=user_id,
            data={"comment_id": comment.id},
        )
        self.events.emit("comments", self._comments_snapshot())
        return comment

    def edit_comment(self, entity_id: str, comment_id: str, text: str, user_id: str) -> Comment:
        comment = self._find_comment(entity_id, comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        if comment.user_id != user_id:
            raise PrecheckFailedError(
                "Only the author can edit this comment",
                {"comment_id": comment_id, "user_id": user_id},
            )

        old_mentions = set(comment.mentions)
        comment.text = text
        comment.mentions = extract_mentions(text)
        comment.edited = True
        comment.touch()

        added = [m for m in comment.mentions if m not in old_mentions]
        if added:
            self._process_mentions(comment, added)

        self.events.emit("comments", self._comments_snapshot())
        return comment

    def add_reaction(self, entity_id: str, comment_id: str, user_id: str, reaction: str) -> bool:
        comment = self._find_comment(entity_id, comment_id)
        if comment is None:
            return False
        users = comment.reactions.setdefault(reaction, [])
        if user_id in users:
            return False
        users.append(user_id)
        self.events.emit("comments", self._comments_snapshot())
        return True

    def comments_for(self, entity_id: str) -> List[Comment]:
        return list(self._comments.get(entity_id, []))

    def replies(self, entity_id: str, parent_id: str) -> List[Comment]:
        return [c for c in self._comments.get(entity_id, []) if c.parent_id == parent_id]

    # Activity feed

    def log_activity(
        self,
        type: ActivityType,
        entity_id: str,
        entity_type: str,
        user_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Activity:
        activity = Activity(
            type=type,
            entity_id=entity_id,
            entity_type=entity_type,
            user_id=user_id,
            data=dict(data or {}),
        )
        self._activities.insert(0, activity)
        self.events.emit("activities", self.activities)
        self._notify_participants(activity)
        return activity

    def activities_by_entity(self, entity_id: str, limit: int = 50) -> List[Activity]:
        return [a for a in self._activities if a.entity_id == entity_id][:limit]

    def activities_by_user(self, user_id: str, limit: int = 50) -> List[Activity]:
        return [a for a in self._activities if a.user_id == user_id][:limit]

    # Presence

    def mark_user_active(self, user_id: str) -> None:
        self._active_users.add(user_id)
        self.events.emit("active_users", self.active_users())

    def mark_user_inactive(self, user_id: str) -> None:
        self._active_users.discard(user_id)
        self.events.emit("active_users", self.active_users())

    def active_users(self) -> List[str]:
        return sorted(self._active_users)

    # Maintenance

    def prune_old_activities(self, now: Optional[datetime] = None) -> int:
        cutoff = as_utc(now or utcnow()) - self._retention
        kept = [a for a in self._activities if as_utc(a.created_at) >= cutoff]
        removed = len(self._activities) - len(kept)
        self._activities = kept
        self.events.emit("activities", self.activities)
        if removed:
            logger.info("activities_pruned", removed=removed)
        return removed

    def start_maintenance(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever())

    async def stop_maintenance(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.prune_old_activities()
            except Exception:
                logger.exception("activity_sweep_failed")

    # Helpers

    def _find_comment(self, entity_id: str, comment_id: str) -> Optional[Comment]:
        return next((c for c in self._comments.get(entity_id, []) if c.id == comment_id), None)

    def _comments_snapshot(self) -> Dict[str, List[Comment]]:
        return {k: list(v) for k, v in self._comments.items()}

    def _process_mentions(self, comment: Comment, mentioned: List[str]) -> None:
        self._mentions.append(
            Mention(
                user_id=comment.user_id,
                mentioned=list(mentioned),
                context=comment.text,
                entity_id=comment.entity_id,
            )
        )
        if self._notifications is None:
            return
        for user_id in mentioned:
            try:
                self._notifications.add(
                    title="You were mentioned",
                    message=f"{comment.user_id} mentioned you in a comment",
                    type="system",
                    severity="info",
                    related_id=comment.id,
                    user_id=user_id,
                )
            except Exception:
                logger.exception("mention_notification_failed", comment_id=comment.id, mentioned=user_id)

    def _notify_participants(self, activity: Activity) -> None:
        if self._notifications is None:
            return
        try:
            self._notifications.add(
                title=activity_title(activity),
                message=activity_message(activity),
                type=NOTIFICATION_TYPE_BY_ACTIVITY.get(activity.type, "system"),
                severity=map_severity(activity.data.get("severity")),
                related_id=activity.entity_id,
            )
        except Exception:
            logger.exception("activity_notification_failed", activity_id=activity.id)
