"""
Composition root.

Builds every store exactly once, wiring collaborators through constructors.
The resulting graph is attached to `app.state.stores` and reached from routes
through the `get_stores` dependency.
"""
import random
from dataclasses import dataclass
from typing import List, Optional

import structlog
from starlette.requests import HTTPConnection

from ..config import Settings
from ..errors import InitializationError
from ..storage import StorageProvider, get_storage
from .analytics import AnalyticsView
from .audits import AuditRegister
from .collaboration import CollaborationStore
from .consumables import ConsumablesInventory
from .documents import DocumentStore
from .events import ChangeEvent, EventEmitter
from .inspections import InspectionStore
from .media import MediaStore
from .nde import NDETracker
from .notifications import NotificationStore
from .photo_analysis import PhotoAnalysisEngine
from .qc_manager import QCManager
from .records import BackingStore
from .schedule import ScheduleStore
from .shift_log import ShiftLog


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QCStores:
    notifications: NotificationStore
    documents: DocumentStore
    analysis: Optional[PhotoAnalysisEngine]
    media: MediaStore
    collaboration: CollaborationStore
    inspections: InspectionStore
    schedule: ScheduleStore
    analytics: AnalyticsView
    qc_manager: QCManager
    audits: AuditRegister
    nde: NDETracker
    consumables: ConsumablesInventory
    shift_log: ShiftLog
    records: BackingStore

    def emitters(self) -> List[EventEmitter]:
        return [
            self.notifications.events,
            self.documents.events,
            self.media.events,
            self.collaboration.events,
            self.inspections.events,
            self.schedule.events,
            self.qc_manager.events,
            self.audits.events,
            self.nde.events,
            self.consumables.events,
            self.shift_log.events,
            self.records.events,
        ]


def low_stock_notifier(notifications: NotificationStore):
    def _on_change(event: ChangeEvent) -> None:
        if event.name != "low_stock":
            return
        data = event.data
        notifications.add(
            title="Low Welding Stock Alert",
            message=f"Low stock for {data['classification']} {data['size']} ({data['quantity']} lbs remaining)",
            type="system",
            severity="warning",
        )

    return _on_change


def build_stores(
    settings: Settings,
    storage: Optional[StorageProvider] = None,
    rng: Optional[random.Random] = None,
) -> QCStores:
    """
    Construct and wire the full store graph.

    Args:
        settings: Application settings
        storage: Object storage for image uploads (defaults to the configured provider)
        rng: Random source for the stand-in detector (defaults to one seeded from settings)

    Returns:
        The wired QCStores

    Raises:
        InitializationError: if any store fails to build
    """
    try:
        notifications = NotificationStore()
        documents = DocumentStore()

        analysis = None
        if settings.analysis_enabled:
            analysis = PhotoAnalysisEngine(
                rng=rng or random.Random(settings.analysis_seed),
                latency_seconds=settings.analysis_latency_seconds,
            )

        media = MediaStore(notifications=notifications, analysis=analysis)
        collaboration = CollaborationStore(
            notifications=notifications,
            retention_days=settings.activity_retention_days,
            sweep_interval_seconds=settings.activity_sweep_interval_seconds,
        )
        inspections = InspectionStore(
            notifications=notifications,
            collaboration=collaboration,
            photos=media,
            analysis=analysis,
            analysis_retry_attempts=settings.analysis_retry_attempts,
            system_user_id=settings.system_user_id,
        )
        schedule = ScheduleStore(
            notifications=notifications,
            collaboration=collaboration,
            tz_default=settings.tz_default,
            system_user_id=settings.system_user_id,
        )
        consumables = ConsumablesInventory()
        consumables.subscribe(low_stock_notifier(notifications))

        stores = QCStores(
            notifications=notifications,
            documents=documents,
            analysis=analysis,
            media=media,
            collaboration=collaboration,
            inspections=inspections,
            schedule=schedule,
            analytics=AnalyticsView(inspections, schedule),
            qc_manager=QCManager(),
            audits=AuditRegister(),
            nde=NDETracker(),
            consumables=consumables,
            shift_log=ShiftLog(),
            records=BackingStore(storage if storage is not None else get_storage()),
        )

        if settings.seed_default_documents:
            documents.seed_defaults()
    except Exception as e:
        logger.exception("store_initialization_failed")
        raise InitializationError("Failed to initialize QC stores", {"error": str(e)}) from e

    logger.info("stores_initialized", analysis_enabled=analysis is not None)
    return stores


def get_stores(conn: HTTPConnection) -> QCStores:
    return conn.app.state.stores
