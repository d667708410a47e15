"""
Scheduled inspections with prerequisite gating.
"""
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytz
import structlog

from ..errors import PrerequisiteNotMetError
from ..schemas.base import as_utc, utcnow
from ..schemas.schedule import InspectionCreate, InspectionStatus, ScheduledInspection
from .collaboration import CollaborationStore
from .events import EventEmitter, Listener
from .notifications import NotificationStore, map_severity


logger = structlog.get_logger(__name__)


def utc_to_local(value: datetime, timezone_str: str) -> datetime:
    """
    Convert a UTC datetime to the given timezone.

    Args:
        value: UTC datetime (naive values are treated as UTC)
        timezone_str: Timezone string (e.g., "America/Vancouver")

    Returns:
        Local datetime (timezone-aware); UTC when the timezone is unknown
    """
    try:
        tz = pytz.timezone(timezone_str)
    except pytz.UnknownTimeZoneError:
        logger.warning("unknown_timezone", timezone=timezone_str)
        return as_utc(value)
    return as_utc(value).astimezone(tz)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    return round((as_utc(end) - as_utc(start)).total_seconds() / 60)


class ScheduleStore:
    def __init__(
        self,
        notifications: Optional[NotificationStore] = None,
        collaboration: Optional[CollaborationStore] = None,
        tz_default: str = "UTC",
        system_user_id: str = "system",
    ) -> None:
        self._inspections: List[ScheduledInspection] = []
        self._notifications = notifications
        self._collaboration = collaboration
        self._tz = tz_default
        self._system_user = system_user_id
        self.events = EventEmitter("schedule")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def inspections(self) -> List[ScheduledInspection]:
        return list(self._inspections)

    def get(self, inspection_id: str) -> Optional[ScheduledInspection]:
        return next((i for i in self._inspections if i.id == inspection_id), None)

    def add_inspection(self, data: InspectionCreate) -> ScheduledInspection:
        missing = [
            pre_id
            for pre_id in data.prerequisites
            if not any(i.id == pre_id and i.status == "completed" for i in self._inspections)
        ]
        if missing:
            raise PrerequisiteNotMetError(missing)

        inspection = ScheduledInspection(**data.model_dump(), status="pending")
        self._inspections.append(inspection)
        self.events.emit("inspections", self.inspections)

        if self._notifications is not None:
            try:
                local_date = utc_to_local(inspection.date, self._tz)
                self._notifications.add(
                    title="New Inspection Scheduled",
                    message=f"{inspection.title} scheduled for {local_date:%Y-%m-%d} ({inspection.location})",
                    type="inspection",
                    severity=map_severity(inspection.priority),
                    related_id=inspection.id,
                )
            except Exception:
                logger.exception("inspection_notification_failed", inspection_id=inspection.id)

        if self._collaboration is not None:
            try:
                self._collaboration.log_activity(
                    type="inspection",
                    entity_id=inspection.id,
                    entity_type="inspection",
                    user_id=self._system_user,
                    data={"action": "scheduled", "location": inspection.location},
                )
            except Exception:
                logger.exception("inspection_activity_failed", inspection_id=inspection.id)

        return inspection

    def update_status(
        self,
        inspection_id: str,
        status: InspectionStatus,
        comment: Optional[str] = None,
    ) -> Optional[ScheduledInspection]:
        inspection = self.get(inspection_id)
        if inspection is None:
            return None

        old_status = inspection.status
        now = utcnow()
        inspection.status = status
        inspection.updated_at = now

        if status == "in-progress" and old_status != "in-progress":
            inspection.started_at = now
        if status == "completed":
            inspection.actual_duration = elapsed_minutes(
                inspection.started_at or inspection.created_at, now
            )

        self.events.emit("inspections", self.inspections)

        if comment and self._collaboration is not None:
            try:
                self._collaboration.add_comment(inspection_id, comment, self._system_user)
            except Exception:
                logger.exception("inspection_comment_failed", inspection_id=inspection_id)

        if self._notifications is not None:
            try:
                self._notifications.add(
                    title="Inspection Status Updated",
                    message=f"{inspection.title} status changed from {old_status} to {status}",
                    type="inspection",
                    severity="critical" if status == "failed" else "info",
                    related_id=inspection_id,
                )
            except Exception:
                logger.exception("inspection_notification_failed", inspection_id=inspection_id)
        return inspection

    def by_job(self, job_number: str) -> List[ScheduledInspection]:
        return [i for i in self._inspections if i.job_number == job_number]

    def by_date_range(self, start: datetime, end: datetime) -> List[ScheduledInspection]:
        start, end = as_utc(start), as_utc(end)
        return [i for i in self._inspections if start <= as_utc(i.date) <= end]

    def due(self, within_hours: float = 24, now: Optional[datetime] = None) -> List[ScheduledInspection]:
        cutoff = as_utc(now or utcnow()) + timedelta(hours=within_hours)
        return [i for i in self._inspections if i.status == "pending" and as_utc(i.date) <= cutoff]

    def overdue(self, now: Optional[datetime] = None) -> List[ScheduledInspection]:
        now = as_utc(now or utcnow())
        return [i for i in self._inspections if i.status == "pending" and as_utc(i.date) < now]
