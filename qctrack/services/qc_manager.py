"""
QC manager register: staff instructions, package audits and the third-party
inspection queue.
"""
from datetime import timedelta
from typing import Callable, Dict, List, Optional

import structlog

from ..errors import NotFoundError, PrecheckFailedError
from ..schemas.base import utcnow
from ..schemas.qc import (
    Acknowledgement,
    PackageAudit,
    PackageAuditCreate,
    QualityMetrics,
    StaffInstruction,
    StaffInstructionCreate,
)
from .events import EventEmitter, Listener


logger = structlog.get_logger(__name__)

REVIEW_CYCLE = timedelta(days=90)
MINIMUM_QUALITY_THRESHOLD = 0.85


def meets_quality_threshold(metrics: QualityMetrics, threshold: float = MINIMUM_QUALITY_THRESHOLD) -> bool:
    return all(value >= threshold for value in metrics.model_dump().values())


def validate_instruction(data: StaffInstructionCreate) -> None:
    if not data.competency_requirements:
        raise PrecheckFailedError("Competency requirements must be specified", {"staff_id": data.staff_id})
    if not data.referenced_standards:
        raise PrecheckFailedError("Referenced standards must be specified", {"staff_id": data.staff_id})


def validate_audit(data: PackageAuditCreate) -> None:
    if not all(f.evidence_attachments for f in data.findings):
        raise PrecheckFailedError("All findings must include supporting evidence", {"package_id": data.package_id})
    if not all(ca.preventive_measures for ca in data.corrective_actions):
        raise PrecheckFailedError(
            "All corrective actions must include preventive measures", {"package_id": data.package_id}
        )


class QCManager:
    def __init__(self) -> None:
        self._instructions: List[StaffInstruction] = []
        self._audits: List[PackageAudit] = []
        self._third_party_queue: List[str] = []
        self._metrics_history: Dict[str, List[QualityMetrics]] = {}
        self.events = EventEmitter("qc_manager")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def staff_instructions(self) -> List[StaffInstruction]:
        return list(self._instructions)

    @property
    def package_audits(self) -> List[PackageAudit]:
        return list(self._audits)

    @property
    def third_party_queue(self) -> List[str]:
        return list(self._third_party_queue)

    def issue_instruction(self, data: StaffInstructionCreate) -> StaffInstruction:
        validate_instruction(data)
        now = utcnow()
        instruction = StaffInstruction(
            **data.model_dump(),
            date_issued=now,
            effective_date=now,
            review_date=now + REVIEW_CYCLE,
        )
        self._instructions.append(instruction)
        self.events.emit("staff_instructions", self.staff_instructions)
        return instruction

    def acknowledge_instruction(self, instruction_id: str, acknowledgement: Acknowledgement) -> StaffInstruction:
        instruction = next((i for i in self._instructions if i.id == instruction_id), None)
        if instruction is None:
            raise NotFoundError("StaffInstruction", instruction_id)
        instruction.acknowledgement = acknowledgement
        self.events.emit("staff_instructions", self.staff_instructions)
        return instruction

    def instructions_for(self, staff_id: str) -> List[StaffInstruction]:
        return [i for i in self._instructions if i.staff_id == staff_id]

    def record_package_audit(self, data: PackageAuditCreate) -> PackageAudit:
        validate_audit(data)
        audit = PackageAudit(**data.model_dump())
        self._audits.append(audit)
        self.events.emit("package_audits", self.package_audits)
        return audit

    def submit_for_third_party_inspection(self, package_id: str, metrics: QualityMetrics) -> bool:
        """
        Queue a package for third-party inspection.

        Returns:
            True when the package was queued; False when a metric is below the
            threshold or the package is already queued
        """
        if not meets_quality_threshold(metrics):
            logger.info("third_party_submission_rejected", package_id=package_id)
            return False
        if package_id in self._third_party_queue:
            return False
        self._third_party_queue.append(package_id)
        self._metrics_history.setdefault(package_id, []).append(metrics)
        self.events.emit("third_party_queue", self.third_party_queue)
        return True

    def quality_trends(self, package_id: str) -> List[QualityMetrics]:
        return list(self._metrics_history.get(package_id, []))

    def latest_metrics(self, package_id: str) -> Optional[QualityMetrics]:
        history = self._metrics_history.get(package_id)
        return history[-1] if history else None
