from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user_id
from ..schemas.inspections import (
    AssignmentRequest,
    ChecklistItem,
    ChecklistItemCreate,
    Deficiency,
    DeficiencyCreate,
    InspectionChecklist,
    LocationRequest,
    MissedAnalysis,
    StatusUpdate,
)
from ..schemas.qc import ChecklistGenerateRequest
from ..services.checklist_generator import generate_checklist, to_checklist_items
from ..services.container import QCStores, get_stores

router = APIRouter(tags=["inspections"])


# =====================
# Deficiencies
# =====================


@router.get("/deficiencies", response_model=List[Deficiency])
async def list_deficiencies(
    status: Optional[str] = None,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if status:
        return stores.inspections.deficiencies_by_status(status)
    return stores.inspections.deficiencies


@router.post("/deficiencies", response_model=Deficiency, status_code=201)
async def create_deficiency(
    body: DeficiencyCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return await stores.inspections.add_deficiency(
        body.description, body.severity, body.location, photos=body.photos
    )


@router.get("/deficiencies/missed-analyses", response_model=List[MissedAnalysis])
async def list_missed_analyses(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.inspections.missed_analyses


@router.post("/deficiencies/missed-analyses/retry")
async def retry_missed_analyses(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    resolved = await stores.inspections.retry_missed_analyses()
    return {"resolved": resolved, "remaining": len(stores.inspections.missed_analyses)}


@router.get("/deficiencies/{deficiency_id}", response_model=Deficiency)
async def get_deficiency(deficiency_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    deficiency = stores.inspections.get_deficiency(deficiency_id)
    if deficiency is None:
        raise HTTPException(status_code=404, detail="Deficiency not found")
    return deficiency


@router.post("/deficiencies/{deficiency_id}/status", response_model=Deficiency)
async def update_deficiency_status(
    deficiency_id: str,
    body: StatusUpdate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    deficiency = stores.inspections.update_status(deficiency_id, body.status, body.comment)
    if deficiency is None:
        raise HTTPException(status_code=404, detail="Deficiency not found")
    return deficiency


@router.post("/deficiencies/{deficiency_id}/assign", response_model=Deficiency)
async def assign_deficiency(
    deficiency_id: str,
    body: AssignmentRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    deficiency = stores.inspections.assign(deficiency_id, body.assignee, body.due_date)
    if deficiency is None:
        raise HTTPException(status_code=404, detail="Deficiency not found")
    return deficiency


# =====================
# Checklist
# =====================


@router.get("/checklist", response_model=InspectionChecklist)
async def get_checklist(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.inspections.checklist


@router.post("/checklist/items", response_model=ChecklistItem, status_code=201)
async def add_checklist_item(
    body: ChecklistItemCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.inspections.add_checklist_item(
        body.description, required=body.required, reference=body.reference, photos=body.photos
    )


@router.post("/checklist/items/{item_id}/complete", response_model=InspectionChecklist)
async def complete_checklist_item(
    item_id: str,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    stores.inspections.complete_checklist_item(item_id)
    return stores.inspections.checklist


@router.post("/checklist/generate", response_model=InspectionChecklist)
async def generate_checklist_items(
    body: ChecklistGenerateRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    templates = generate_checklist(body.type, body.conditions)
    stores.inspections.apply_checklist_template(to_checklist_items(templates))
    return stores.inspections.checklist


@router.put("/checklist/location")
async def set_location(
    body: LocationRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    stores.inspections.set_location(body.location)
    return {"location": stores.inspections.current_location}
