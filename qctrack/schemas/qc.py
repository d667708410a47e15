"""Schemas for the supplementary QC registers (manager, audits, NDE, consumables, shift log)."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .base import new_id, utcnow


# Checklist generator

class ChecklistTemplateItem(BaseModel):
    id: str
    text: str
    category: str
    required: bool = True
    references: List[str] = Field(default_factory=list)


class ChecklistGenerateRequest(BaseModel):
    type: str
    conditions: Dict[str, Any] = Field(default_factory=dict)


# QC manager

class QualityMetrics(BaseModel):
    accuracy: float
    completeness: float
    timeliness: float
    compliance: float


class Acknowledgement(BaseModel):
    date: datetime = Field(default_factory=utcnow)
    understood: bool
    questions: List[str] = Field(default_factory=list)
    verification_method: Literal["verbal", "demonstration", "written"]
    verified_by: str


class StaffInstructionCreate(BaseModel):
    staff_id: str
    instructions: str
    priority: Literal["normal", "urgent", "critical"] = "normal"
    category: Literal["safety", "quality", "procedure", "general"] = "general"
    competency_requirements: List[str] = Field(default_factory=list)
    referenced_standards: List[str] = Field(default_factory=list)


class StaffInstruction(StaffInstructionCreate):
    id: str = Field(default_factory=new_id)
    date_issued: datetime = Field(default_factory=utcnow)
    acknowledgement: Optional[Acknowledgement] = None
    verified_by_manager: bool = True
    effective_date: datetime = Field(default_factory=utcnow)
    review_date: datetime


class AuditFindingDetail(BaseModel):
    category: str
    description: str
    severity: Literal["minor", "major", "critical"]
    correction_required: bool = False
    standard_reference: str = ""
    evidence_attachments: List[str] = Field(default_factory=list)


class CorrectiveAction(BaseModel):
    finding: str
    action: str
    completed_date: Optional[datetime] = None
    verified_by: str = ""
    effectiveness: float = 0.0
    preventive_measures: List[str] = Field(default_factory=list)


class PackageAuditCreate(BaseModel):
    package_id: str
    auditor_id: str
    findings: List[AuditFindingDetail] = Field(default_factory=list)
    third_party_inspection_status: Literal["pending", "approved", "rejected"] = "pending"
    corrective_actions: List[CorrectiveAction] = Field(default_factory=list)
    quality_metrics: QualityMetrics


class PackageAudit(PackageAuditCreate):
    id: str = Field(default_factory=new_id)
    date: datetime = Field(default_factory=utcnow)


class ThirdPartySubmission(BaseModel):
    package_id: str
    quality_metrics: QualityMetrics


# Audit register

class AuditFinding(BaseModel):
    description: str
    severity: Literal["minor", "major", "critical"]
    responsible_party: str
    corrective_action: str
    due_date: datetime
    status: Literal["open", "in-progress", "closed"] = "open"


class AuditCreate(BaseModel):
    date: datetime = Field(default_factory=utcnow)
    auditor: str
    type: Literal["internal", "client"]
    findings: List[AuditFinding] = Field(default_factory=list)
    status: Literal["open", "closed"] = "open"


class AuditItem(AuditCreate):
    id: str = Field(default_factory=new_id)


# NDE tracking

class NDERequestCreate(BaseModel):
    weld_id: str
    method: str
    requested_by: str
    requested_date: datetime = Field(default_factory=utcnow)
    priority: Literal["normal", "urgent"] = "normal"


class NDERequest(NDERequestCreate):
    id: str = Field(default_factory=new_id)
    status: Literal["pending", "scheduled", "completed"] = "pending"


class NDEReportCreate(BaseModel):
    request_id: str
    inspector: str
    date: datetime = Field(default_factory=utcnow)
    results: str
    attachments: List[str] = Field(default_factory=list)


class NDEReport(NDEReportCreate):
    id: str = Field(default_factory=new_id)
    verified: bool = False


# Welding consumables

class WeldingRodUpdate(BaseModel):
    type: Literal["SMAW", "GTAW", "Carbon Arc"]
    classification: str  # e.g. E7018 H4R
    size: str  # e.g. 1/8"
    quantity: float  # pounds
    job_number: str
    location: str  # rod room location
    minimum_stock: float


class WeldingRod(WeldingRodUpdate):
    last_inventory_date: datetime = Field(default_factory=utcnow)


class FCWire(BaseModel):
    size: str  # e.g. 0.045
    spools: int
    job_number: str
    location: str


class JobInventory(BaseModel):
    welding_rods: List[WeldingRod] = Field(default_factory=list)
    fc_wire: List[FCWire] = Field(default_factory=list)


# Shift supervisor log

class TurnoverLogCreate(BaseModel):
    date: datetime = Field(default_factory=utcnow)
    shift: Literal["day", "night"]
    supervisor: str
    notes: str = ""
    attendees: List[str] = Field(default_factory=list)


class TurnoverLog(TurnoverLogCreate):
    id: str = Field(default_factory=new_id)


class NonConformanceReportCreate(BaseModel):
    date: datetime = Field(default_factory=utcnow)
    reported_by: str
    description: str
    witness_statements: List[str] = Field(default_factory=list)
    root_cause: str = ""
    corrective_action: str = ""
    third_party_involved: bool = False


class NonConformanceReport(NonConformanceReportCreate):
    id: str = Field(default_factory=new_id)
    status: Literal["open", "investigating", "closed"] = "open"


class WeldMap(BaseModel):
    id: str = Field(default_factory=new_id)
    package_id: str
    last_updated: datetime = Field(default_factory=utcnow)
    nde_results: List[NDEReport] = Field(default_factory=list)
    verified_by: str
