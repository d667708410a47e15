"""
Relational backing store.

A uniform CRUD contract per table (`get_all` ordered by a declared column,
newest first, and `create`), unread/mark-read helpers for notifications and an
image upload returning the object's public URL. Every create emits a change
event on the `db` emitter; SQLAlchemy and storage failures surface as
BackingStoreError.
"""
import io
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

import structlog
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackingStoreError, PrecheckFailedError
from ..models.models import DeficiencyRow, DocumentRow, InspectionRow, NotificationRow, PhotoRow
from ..schemas.records import (
    DeficiencyRowOut,
    DocumentRowOut,
    InspectionRowOut,
    NotificationRowOut,
    PhotoRowOut,
    UploadedImage,
)
from ..storage import StorageProvider, canonical_key
from .events import EventEmitter, Listener


logger = structlog.get_logger(__name__)

OutT = TypeVar("OutT", bound=BaseModel)

# API field name -> mapped attribute name
COLUMN_RENAMES = {"metadata": "metadata_json"}


def to_columns(data: BaseModel) -> Dict[str, Any]:
    values = data.model_dump()
    return {COLUMN_RENAMES.get(k, k): v for k, v in values.items()}


def wrap_db_error(e: SQLAlchemyError, table: str) -> BackingStoreError:
    code = getattr(e, "code", None)
    logger.error("backing_store_failed", table=table, error=str(e), code=code)
    return BackingStoreError(f"{table}: {e.__class__.__name__}", code=code)


class TableRepository(Generic[OutT]):
    def __init__(self, model: Type[Any], out: Type[OutT], order_by: str, events: EventEmitter) -> None:
        self.model = model
        self.out = out
        self.order_by = order_by
        self.events = events

    @property
    def table(self) -> str:
        return self.model.__tablename__

    def get_all(self, db: Session) -> List[OutT]:
        try:
            rows = db.execute(select(self.model).order_by(getattr(self.model, self.order_by).desc())).scalars().all()
        except SQLAlchemyError as e:
            raise wrap_db_error(e, self.table)
        return [self.out.model_validate(r) for r in rows]

    def create(self, db: Session, data: BaseModel) -> OutT:
        row = self.model(**to_columns(data))
        try:
            db.add(row)
            db.commit()
            db.refresh(row)
        except SQLAlchemyError as e:
            db.rollback()
            raise wrap_db_error(e, self.table)
        created = self.out.model_validate(row)
        self.events.emit(self.table, created)
        return created


class NotificationRepository(TableRepository[NotificationRowOut]):
    def get_unread(self, db: Session, user_id: str) -> List[NotificationRowOut]:
        stmt = (
            select(NotificationRow)
            .where(NotificationRow.user_id == user_id, NotificationRow.read.is_(False))
            .order_by(NotificationRow.created_at.desc())
        )
        try:
            rows = db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise wrap_db_error(e, self.table)
        return [NotificationRowOut.model_validate(r) for r in rows]

    def mark_all_read(self, db: Session, user_id: str) -> int:
        try:
            result = db.execute(
                update(NotificationRow).where(NotificationRow.user_id == user_id).values(read=True)
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise wrap_db_error(e, self.table)
        self.events.emit("notifications_read", {"user_id": user_id})
        return result.rowcount or 0


class BackingStore:
    def __init__(self, storage: Optional[StorageProvider] = None) -> None:
        self.events = EventEmitter("db")
        self.storage = storage
        self.documents = TableRepository(DocumentRow, DocumentRowOut, "created_at", self.events)
        self.inspections = TableRepository(InspectionRow, InspectionRowOut, "date", self.events)
        self.deficiencies = TableRepository(DeficiencyRow, DeficiencyRowOut, "created_at", self.events)
        self.photos = TableRepository(PhotoRow, PhotoRowOut, "created_at", self.events)
        self.notifications = NotificationRepository(NotificationRow, NotificationRowOut, "created_at", self.events)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    def upload_image(
        self,
        filename: str,
        data: bytes,
        content_type: Optional[str] = None,
        job_number: Optional[str] = None,
    ) -> UploadedImage:
        """
        Store an image and return where it can be fetched.

        Args:
            filename: Original file name (extension is kept)
            data: Raw image bytes
            content_type: MIME type recorded with the object
            job_number: Partitions the storage key per job

        Returns:
            The public URL, storage key and pixel dimensions
        """
        if self.storage is None:
            raise BackingStoreError("No storage provider configured", code="storage_unavailable")
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except (UnidentifiedImageError, OSError):
            raise PrecheckFailedError("Uploaded file is not a valid image", {"filename": filename})

        key = canonical_key(job_number, "photos", filename)
        try:
            self.storage.upload(data, key, content_type)
        except Exception as e:
            logger.error("image_upload_failed", key=key, error=str(e))
            raise BackingStoreError(f"Upload failed: {e}", code="upload_failed")

        uploaded = UploadedImage(
            url=self.storage.public_url(key),
            key=key,
            width=width,
            height=height,
            content_type=content_type,
        )
        self.events.emit("photos_uploaded", uploaded)
        return uploaded
