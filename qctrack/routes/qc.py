from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user_id
from ..schemas.qc import (
    Acknowledgement,
    AuditCreate,
    AuditFinding,
    AuditItem,
    ChecklistGenerateRequest,
    ChecklistTemplateItem,
    FCWire,
    JobInventory,
    NDEReport,
    NDEReportCreate,
    NDERequest,
    NDERequestCreate,
    NonConformanceReport,
    NonConformanceReportCreate,
    PackageAudit,
    PackageAuditCreate,
    QualityMetrics,
    StaffInstruction,
    StaffInstructionCreate,
    ThirdPartySubmission,
    TurnoverLog,
    TurnoverLogCreate,
    WeldingRod,
    WeldingRodUpdate,
    WeldMap,
)
from ..services.checklist_generator import generate_checklist
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/qc", tags=["qc"])


# =====================
# Checklist templates
# =====================


@router.post("/checklists/generate", response_model=List[ChecklistTemplateItem])
async def preview_checklist(body: ChecklistGenerateRequest, user_id: str = Depends(get_current_user_id)):
    return generate_checklist(body.type, body.conditions)


# =====================
# QC manager
# =====================


@router.get("/instructions", response_model=List[StaffInstruction])
async def list_instructions(
    staff_id: Optional[str] = None,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if staff_id:
        return stores.qc_manager.instructions_for(staff_id)
    return stores.qc_manager.staff_instructions


@router.post("/instructions", response_model=StaffInstruction, status_code=201)
async def issue_instruction(
    body: StaffInstructionCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.qc_manager.issue_instruction(body)


@router.post("/instructions/{instruction_id}/acknowledge", response_model=StaffInstruction)
async def acknowledge_instruction(
    instruction_id: str,
    body: Acknowledgement,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.qc_manager.acknowledge_instruction(instruction_id, body)


@router.get("/package-audits", response_model=List[PackageAudit])
async def list_package_audits(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.qc_manager.package_audits


@router.post("/package-audits", response_model=PackageAudit, status_code=201)
async def record_package_audit(
    body: PackageAuditCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.qc_manager.record_package_audit(body)


@router.get("/third-party-queue", response_model=List[str])
async def third_party_queue(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.qc_manager.third_party_queue


@router.post("/third-party-queue")
async def submit_third_party(
    body: ThirdPartySubmission,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    queued = stores.qc_manager.submit_for_third_party_inspection(body.package_id, body.quality_metrics)
    return {"queued": queued}


@router.get("/packages/{package_id}/quality-trends", response_model=List[QualityMetrics])
async def quality_trends(package_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.qc_manager.quality_trends(package_id)


# =====================
# Audits
# =====================


@router.get("/audits", response_model=List[AuditItem])
async def list_audits(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.audits.audits


@router.post("/audits", response_model=AuditItem, status_code=201)
async def create_audit(body: AuditCreate, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.audits.create_audit(body)


@router.post("/audits/{audit_id}/findings", response_model=AuditItem)
async def add_audit_finding(
    audit_id: str,
    body: AuditFinding,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    audit = stores.audits.add_finding(audit_id, body)
    if audit is None:
        raise HTTPException(status_code=404, detail="Audit not found")
    return audit


@router.get("/audits/findings/open", response_model=List[AuditFinding])
async def open_findings(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.audits.open_findings()


# =====================
# NDE
# =====================


@router.get("/nde/requests", response_model=List[NDERequest])
async def list_nde_requests(
    pending_only: bool = False,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.nde.pending_requests() if pending_only else stores.nde.requests


@router.post("/nde/requests", response_model=NDERequest, status_code=201)
async def request_nde(body: NDERequestCreate, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.nde.request_nde(body)


@router.post("/nde/reports", response_model=NDEReport, status_code=201)
async def submit_nde_report(body: NDEReportCreate, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.nde.submit_report(body)


@router.post("/nde/reports/{report_id}/verify", response_model=NDEReport)
async def verify_nde_report(report_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    report = stores.nde.verify_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


# =====================
# Welding consumables
# =====================


@router.post("/consumables/rods", response_model=WeldingRod)
async def update_rod_inventory(
    body: WeldingRodUpdate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.consumables.update_rod_inventory(body)


@router.post("/consumables/fc-wire", response_model=FCWire)
async def update_fc_wire(body: FCWire, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.consumables.update_fc_wire_inventory(body)


@router.get("/consumables/low-stock", response_model=List[WeldingRod])
async def low_stock(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.consumables.low_stock()


@router.get("/consumables/jobs/{job_number}", response_model=JobInventory)
async def job_inventory(job_number: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.consumables.inventory_by_job(job_number)


# =====================
# Shift supervisor log
# =====================


@router.get("/shift/turnovers", response_model=List[TurnoverLog])
async def list_turnovers(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.shift_log.turnover_logs


@router.post("/shift/turnovers", response_model=TurnoverLog, status_code=201)
async def record_turnover(body: TurnoverLogCreate, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.shift_log.record_turnover(body)


@router.get("/shift/ncrs", response_model=List[NonConformanceReport])
async def list_ncrs(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.shift_log.nc_reports


@router.post("/shift/ncrs", response_model=NonConformanceReport, status_code=201)
async def create_ncr(
    body: NonConformanceReportCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.shift_log.create_ncr(body)


@router.post("/shift/weld-maps/{package_id}", response_model=WeldMap)
async def attach_nde_to_weld_map(
    package_id: str,
    report_id: str,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    report = stores.nde.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return stores.shift_log.update_weld_map(package_id, report, verified_by=user_id)


@router.post("/shift/code-work-reviews/{package_id}")
async def review_code_work(package_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return {"package_id": package_id, "reviewed_at": stores.shift_log.review_code_work_package(package_id)}


@router.get("/shift/code-work-reviews/{package_id}")
async def last_code_work_review(package_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    reviewed_at: Optional[datetime] = stores.shift_log.last_code_work_review(package_id)
    if reviewed_at is None:
        raise HTTPException(status_code=404, detail="Package has not been reviewed")
    return {"package_id": package_id, "reviewed_at": reviewed_at}
