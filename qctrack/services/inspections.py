"""
Deficiency register and inspection checklist.

Secondary effects of creating a deficiency (photo analysis summary,
notification, activity entry) are best-effort: a failure is logged and the
deficiency stays created. Photo analyses that still fail after the configured
retries are kept as missed analyses and can be re-attempted later.
"""
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol

import structlog

from ..schemas.analysis import AnalysisResult
from ..schemas.inspections import (
    ChecklistItem,
    Deficiency,
    InspectionChecklist,
    MissedAnalysis,
    Severity,
)
from ..schemas.media import PhotoAttachment
from ..schemas.base import utcnow
from .collaboration import CollaborationStore
from .events import EventEmitter, Listener
from .notifications import NotificationStore, map_severity
from .photo_analysis import PhotoAnalysisEngine


logger = structlog.get_logger(__name__)


class PhotoLookup(Protocol):
    async def get_photo(self, photo_id: str) -> Optional[PhotoAttachment]: ...


def summarize_analysis(result: AnalysisResult) -> str:
    return "\nAI Analysis: " + ", ".join(
        f"{d.type} detected ({d.confidence * 100:.1f}% confidence)" for d in result.defects
    )


class InspectionStore:
    def __init__(
        self,
        notifications: Optional[NotificationStore] = None,
        collaboration: Optional[CollaborationStore] = None,
        photos: Optional[PhotoLookup] = None,
        analysis: Optional[PhotoAnalysisEngine] = None,
        analysis_retry_attempts: int = 0,
        system_user_id: str = "system",
    ) -> None:
        self._deficiencies: List[Deficiency] = []
        self._checklist = InspectionChecklist()
        self._current_location = ""
        self._missed: List[MissedAnalysis] = []
        self._notifications = notifications
        self._collaboration = collaboration
        self._photos = photos
        self._analysis = analysis
        self._retry_attempts = max(0, analysis_retry_attempts)
        self._system_user = system_user_id
        self.events = EventEmitter("inspection")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def deficiencies(self) -> List[Deficiency]:
        return list(self._deficiencies)

    @property
    def checklist(self) -> InspectionChecklist:
        return self._checklist

    @property
    def current_location(self) -> str:
        return self._current_location

    @property
    def missed_analyses(self) -> List[MissedAnalysis]:
        return list(self._missed)

    # Deficiencies

    async def add_deficiency(
        self,
        description: str,
        severity: Severity,
        location: str,
        photos: Optional[Iterable[str]] = None,
    ) -> Deficiency:
        deficiency = Deficiency(
            description=description,
            severity=severity,
            location=location or self._current_location,
            photos=list(photos or []),
        )
        self._deficiencies.append(deficiency)
        self.events.emit("deficiencies", self.deficiencies)

        if deficiency.photos and self._photos is not None and self._analysis is not None:
            for photo_id in deficiency.photos:
                await self._append_photo_analysis(deficiency, photo_id)

        if self._notifications is not None:
            try:
                self._notifications.add(
                    title="New Deficiency",
                    message=f"New {severity} deficiency reported at {deficiency.location}",
                    type="deficiency",
                    severity=map_severity(severity),
                    related_id=deficiency.id,
                )
            except Exception:
                logger.exception("deficiency_notification_failed", deficiency_id=deficiency.id)

        if self._collaboration is not None:
            try:
                self._collaboration.log_activity(
                    type="deficiency",
                    entity_id=deficiency.id,
                    entity_type="deficiency",
                    user_id=self._system_user,
                    data={"action": "created", "severity": severity},
                )
            except Exception:
                logger.exception("deficiency_activity_failed", deficiency_id=deficiency.id)

        return deficiency

    def update_status(self, deficiency_id: str, status: str, comment: Optional[str] = None) -> Optional[Deficiency]:
        deficiency = self.get_deficiency(deficiency_id)
        if deficiency is None:
            return None
        deficiency.status = status
        deficiency.touch()

        if comment and self._collaboration is not None:
            try:
                self._collaboration.add_comment(
                    deficiency_id, comment, self._system_user, entity_type="deficiency"
                )
            except Exception:
                logger.exception("deficiency_comment_failed", deficiency_id=deficiency_id)

        self.events.emit("deficiencies", self.deficiencies)
        return deficiency

    def assign(self, deficiency_id: str, assignee: str, due_date: Optional[datetime] = None) -> Optional[Deficiency]:
        deficiency = self.get_deficiency(deficiency_id)
        if deficiency is None:
            return None
        deficiency.assigned_to = assignee
        if due_date is not None:
            deficiency.due_date = due_date
        deficiency.touch()
        self.events.emit("deficiencies", self.deficiencies)

        if self._collaboration is not None:
            try:
                self._collaboration.log_activity(
                    type="assignment",
                    entity_id=deficiency.id,
                    entity_type="deficiency",
                    user_id=self._system_user,
                    data={"assignee": assignee, "severity": deficiency.severity},
                )
            except Exception:
                logger.exception("assignment_activity_failed", deficiency_id=deficiency.id)
        return deficiency

    def get_deficiency(self, deficiency_id: str) -> Optional[Deficiency]:
        return next((d for d in self._deficiencies if d.id == deficiency_id), None)

    def deficiencies_by_status(self, status: str) -> List[Deficiency]:
        return [d for d in self._deficiencies if d.status == status]

    async def retry_missed_analyses(self) -> int:
        pending, self._missed = self._missed, []
        resolved = 0
        for missed in pending:
            deficiency = self.get_deficiency(missed.deficiency_id)
            if deficiency is None:
                continue
            if await self._append_photo_analysis(deficiency, missed.photo_id):
                resolved += 1
        if resolved:
            self.events.emit("deficiencies", self.deficiencies)
        return resolved

    async def _append_photo_analysis(self, deficiency: Deficiency, photo_id: str) -> bool:
        last_error: Optional[Exception] = None
        for attempt in range(self._retry_attempts + 1):
            try:
                photo = await self._photos.get_photo(photo_id)
                if photo is None:
                    return False
                result = self._analysis.get_analysis(photo.id) or await self._analysis.analyze_photo(photo)
                if result.defects:
                    deficiency.description += summarize_analysis(result)
                    deficiency.touch()
                return True
            except Exception as e:
                last_error = e
                logger.warning(
                    "deficiency_photo_analysis_failed",
                    deficiency_id=deficiency.id,
                    photo_id=photo_id,
                    attempt=attempt + 1,
                    error=str(e),
                )
        self._missed.append(
            MissedAnalysis(deficiency_id=deficiency.id, photo_id=photo_id, error=str(last_error))
        )
        return False

    # Checklist

    def add_checklist_item(
        self,
        description: str,
        required: bool = True,
        reference: Optional[str] = None,
        photos: Optional[List[str]] = None,
    ) -> ChecklistItem:
        item = ChecklistItem(
            description=description,
            required=required,
            reference=reference,
            photos=list(photos or []),
        )
        self._checklist.items.append(item)
        self._checklist.last_updated = utcnow()
        self.events.emit("checklist", self._checklist)
        return item

    def apply_checklist_template(self, items: Iterable[ChecklistItem]) -> List[ChecklistItem]:
        known = {i.id for i in self._checklist.items}
        added = []
        for item in items:
            if item.id in known:
                continue
            known.add(item.id)
            self._checklist.items.append(item)
            added.append(item)
        self._checklist.last_updated = utcnow()
        self.events.emit("checklist", self._checklist)
        return added

    def complete_checklist_item(self, item_id: str) -> bool:
        if item_id in self._checklist.completed_items:
            return False
        if not any(item.id == item_id for item in self._checklist.items):
            return False
        self._checklist.completed_items.append(item_id)
        self._checklist.last_updated = utcnow()
        self.events.emit("checklist", self._checklist)
        return True

    def set_location(self, location: str) -> None:
        self._current_location = location
        self.events.emit("current_location", location)
