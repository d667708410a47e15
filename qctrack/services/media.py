"""
Photo attachment store.

A photo is visible as soon as it is added; analysis runs as a background task
and enriches the same record when it completes.
"""
import asyncio
from typing import Callable, Dict, List, Optional

import structlog

from ..schemas.analysis import AnalysisResult
from ..schemas.media import DetectedDefect, PhotoAnalysisSummary, PhotoAttachment, PhotoCreate
from ..schemas.notifications import NotificationSeverity
from .events import EventEmitter, Listener
from .notifications import NotificationStore
from .photo_analysis import PhotoAnalysisEngine


logger = structlog.get_logger(__name__)


def defect_notification_severity(result: AnalysisResult) -> NotificationSeverity:
    max_confidence = max(d.confidence for d in result.defects)
    if max_confidence > 0.9:
        return "critical"
    if max_confidence > 0.7:
        return "warning"
    return "info"


class MediaStore:
    def __init__(
        self,
        notifications: Optional[NotificationStore] = None,
        analysis: Optional[PhotoAnalysisEngine] = None,
    ) -> None:
        self._photos: List[PhotoAttachment] = []
        self._notifications = notifications
        self._analysis = analysis
        self._pending: Dict[str, "asyncio.Task[None]"] = {}
        self.events = EventEmitter("media")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def photos(self) -> List[PhotoAttachment]:
        return list(self._photos)

    async def add_photo(self, data: PhotoCreate) -> PhotoAttachment:
        photo = PhotoAttachment(**data.model_dump())
        self._photos.append(photo)
        self.events.emit("photos", self.photos)

        if self._notifications is not None:
            try:
                self._notifications.add(
                    title="New Photo Added",
                    message=f"Photo added for {photo.description or photo.location}",
                    type="inspection",
                    severity="info",
                    related_id=photo.id,
                )
            except Exception:
                logger.exception("photo_notification_failed", photo_id=photo.id)

        if self._analysis is not None:
            self._pending[photo.id] = asyncio.create_task(self._run_analysis(photo))
        return photo

    def is_pending(self, photo_id: str) -> bool:
        return photo_id in self._pending

    async def wait_for_analysis(self, photo_id: str) -> None:
        task = self._pending.get(photo_id)
        if task is not None:
            # _run_analysis never raises; shield keeps an abandoned waiter from cancelling it
            await asyncio.shield(task)

    async def get_photo(self, photo_id: str) -> Optional[PhotoAttachment]:
        photo = self._find(photo_id)
        if photo is not None:
            await self.wait_for_analysis(photo_id)
        return photo

    def by_deficiency(self, deficiency_id: str) -> List[PhotoAttachment]:
        return [p for p in self._photos if p.deficiency_id == deficiency_id]

    def by_inspection(self, inspection_id: str) -> List[PhotoAttachment]:
        return [p for p in self._photos if p.inspection_id == inspection_id]

    def by_job(self, job_number: str) -> List[PhotoAttachment]:
        return [p for p in self._photos if p.job_number == job_number]

    def by_location(self, location: str) -> List[PhotoAttachment]:
        return [p for p in self._photos if location in p.location]

    def by_tag(self, tag: str) -> List[PhotoAttachment]:
        return [p for p in self._photos if tag in p.tags]

    def add_tag(self, photo_id: str, tag: str) -> bool:
        photo = self._find(photo_id)
        if photo is None or tag in photo.tags:
            return False
        photo.tags.append(tag)
        photo.touch()
        self.events.emit("photos", self.photos)
        return True

    def update_description(self, photo_id: str, description: str) -> Optional[PhotoAttachment]:
        photo = self._find(photo_id)
        if photo is None:
            return None
        photo.description = description
        photo.touch()
        self.events.emit("photos", self.photos)
        return photo

    def _find(self, photo_id: str) -> Optional[PhotoAttachment]:
        return next((p for p in self._photos if p.id == photo_id), None)

    async def _run_analysis(self, photo: PhotoAttachment) -> None:
        try:
            result = await self._analysis.analyze_photo(photo)
            photo.analysis = PhotoAnalysisSummary(
                defects=[
                    DetectedDefect(type=d.type, confidence=d.confidence, location=d.bounding_box)
                    for d in result.defects
                ],
                recommendations=result.recommendations,
                quality_score=result.quality_score,
            )
            photo.touch()
            self.events.emit("photos", self.photos)

            if result.defects and self._notifications is not None:
                self._notifications.add(
                    title="Defects Detected",
                    message=f"AI analysis found {len(result.defects)} potential defects in recent photo",
                    type="inspection",
                    severity=defect_notification_severity(result),
                    related_id=photo.id,
                )
        except Exception as e:
            logger.warning("photo_analysis_failed", photo_id=photo.id, error=str(e))
        finally:
            self._pending.pop(photo.id, None)
