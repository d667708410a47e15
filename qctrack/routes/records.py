from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import get_current_user_id
from ..db import get_db
from ..schemas.records import (
    DeficiencyRowCreate,
    DeficiencyRowOut,
    DocumentRowCreate,
    DocumentRowOut,
    InspectionRowCreate,
    InspectionRowOut,
    NotificationRowCreate,
    NotificationRowOut,
    PhotoRowCreate,
    PhotoRowOut,
)
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/db", tags=["records"])


@router.get("/documents", response_model=List[DocumentRowOut])
def list_documents(db: Session = Depends(get_db), stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.records.documents.get_all(db)


@router.post("/documents", response_model=DocumentRowOut, status_code=201)
def create_document(
    body: DocumentRowCreate,
    db: Session = Depends(get_db),
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if body.created_by is None:
        body.created_by = user_id
    return stores.records.documents.create(db, body)


@router.get("/inspections", response_model=List[InspectionRowOut])
def list_inspections(db: Session = Depends(get_db), stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.records.inspections.get_all(db)


@router.post("/inspections", response_model=InspectionRowOut, status_code=201)
def create_inspection(
    body: InspectionRowCreate,
    db: Session = Depends(get_db),
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if body.created_by is None:
        body.created_by = user_id
    return stores.records.inspections.create(db, body)


@router.get("/deficiencies", response_model=List[DeficiencyRowOut])
def list_deficiencies(db: Session = Depends(get_db), stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.records.deficiencies.get_all(db)


@router.post("/deficiencies", response_model=DeficiencyRowOut, status_code=201)
def create_deficiency(
    body: DeficiencyRowCreate,
    db: Session = Depends(get_db),
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if body.created_by is None:
        body.created_by = user_id
    return stores.records.deficiencies.create(db, body)


@router.get("/photos", response_model=List[PhotoRowOut])
def list_photos(db: Session = Depends(get_db), stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.records.photos.get_all(db)


@router.post("/photos", response_model=PhotoRowOut, status_code=201)
def create_photo(
    body: PhotoRowCreate,
    db: Session = Depends(get_db),
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if body.created_by is None:
        body.created_by = user_id
    return stores.records.photos.create(db, body)


@router.get("/notifications/unread", response_model=List[NotificationRowOut])
def unread_notifications(db: Session = Depends(get_db), stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.records.notifications.get_unread(db, user_id)


@router.post("/notifications", response_model=NotificationRowOut, status_code=201)
def create_notification(
    body: NotificationRowCreate,
    db: Session = Depends(get_db),
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.records.notifications.create(db, body)


@router.post("/notifications/read-all")
def mark_all_read(db: Session = Depends(get_db), stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    updated = stores.records.notifications.mark_all_read(db, user_id)
    return {"status": "ok", "updated": updated}
