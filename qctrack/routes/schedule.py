from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user_id
from ..schemas.schedule import InspectionCreate, InspectionStatusUpdate, ScheduledInspection
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("", response_model=List[ScheduledInspection])
async def list_inspections(
    job_number: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if job_number:
        return stores.schedule.by_job(job_number)
    if start and end:
        return stores.schedule.by_date_range(start, end)
    return stores.schedule.inspections


@router.get("/due", response_model=List[ScheduledInspection])
async def due_inspections(
    within_hours: float = 24,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.schedule.due(within_hours)


@router.get("/overdue", response_model=List[ScheduledInspection])
async def overdue_inspections(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.schedule.overdue()


@router.post("", response_model=ScheduledInspection, status_code=201)
async def schedule_inspection(
    body: InspectionCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    # PrerequisiteNotMetError -> 409
    return stores.schedule.add_inspection(body)


@router.get("/{inspection_id}", response_model=ScheduledInspection)
async def get_inspection(inspection_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    inspection = stores.schedule.get(inspection_id)
    if inspection is None:
        raise HTTPException(status_code=404, detail="Inspection not found")
    return inspection


@router.post("/{inspection_id}/status", response_model=ScheduledInspection)
async def update_inspection_status(
    inspection_id: str,
    body: InspectionStatusUpdate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    inspection = stores.schedule.update_status(inspection_id, body.status, body.comment)
    if inspection is None:
        raise HTTPException(status_code=404, detail="Inspection not found")
    return inspection
