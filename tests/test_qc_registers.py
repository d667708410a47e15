from datetime import timedelta

import pytest

from qctrack.errors import NotFoundError, PrecheckFailedError
from qctrack.schemas.base import utcnow
from qctrack.schemas.qc import (
    Acknowledgement,
    AuditCreate,
    AuditFinding,
    AuditFindingDetail,
    CorrectiveAction,
    FCWire,
    NDEReportCreate,
    NDERequestCreate,
    NonConformanceReportCreate,
    PackageAuditCreate,
    QualityMetrics,
    StaffInstructionCreate,
    TurnoverLogCreate,
    WeldingRodUpdate,
)
from qctrack.services.audits import AuditRegister
from qctrack.services.checklist_generator import generate_checklist, to_checklist_items
from qctrack.services.consumables import ConsumablesInventory
from qctrack.services.nde import NDETracker
from qctrack.services.qc_manager import REVIEW_CYCLE, QCManager
from qctrack.services.shift_log import ShiftLog

GOOD_METRICS = QualityMetrics(accuracy=0.95, completeness=0.9, timeliness=0.88, compliance=0.97)


def _rod(**overrides) -> WeldingRodUpdate:
    data = {
        "type": "SMAW",
        "classification": "E7018 H4R",
        "size": '1/8"',
        "quantity": 50,
        "job_number": "J-1001",
        "location": "Rod room A",
        "minimum_stock": 20,
    }
    data.update(overrides)
    return WeldingRodUpdate(**data)


class TestChecklistGenerator:
    def test_standard_items(self):
        items = generate_checklist("welding")
        assert [i.id for i in items] == ["w1", "w2"]

    def test_contextual_items(self):
        items = generate_checklist(
            "concrete",
            {"temperature": 35, "weather": "rain", "height": 12, "third_party_required": True},
        )

        assert [i.id for i in items] == [
            "c1",
            "c2",
            "ctx-cold-concrete",
            "ctx-precipitation",
            "ctx-fall-protection",
            "ctx-third-party",
        ]

    def test_cold_welding_needs_preheat(self):
        assert [i.id for i in generate_checklist("welding", {"temperature": 20})][-1] == "ctx-preheat"

    def test_unknown_type(self):
        assert generate_checklist("roofing") == []

    def test_to_checklist_items(self):
        items = to_checklist_items(generate_checklist("foundation", {"weather": "snow"}))

        assert items[0].description == "Verify foundation depth meets specifications"
        assert items[0].reference == "ACI 318-19"
        assert items[-1].reference is None


class TestQCManager:
    def test_issue_and_acknowledge_instruction(self):
        manager = QCManager()
        instruction = manager.issue_instruction(
            StaffInstructionCreate(
                staff_id="w-12",
                instructions="Preheat to 150F",
                competency_requirements=["D1.1 3G"],
                referenced_standards=["AWS D1.1"],
            )
        )

        assert instruction.review_date - instruction.date_issued == REVIEW_CYCLE
        acked = manager.acknowledge_instruction(
            instruction.id,
            Acknowledgement(understood=True, verification_method="verbal", verified_by="qc-lead"),
        )
        assert acked.acknowledgement.understood
        assert manager.instructions_for("w-12") == [instruction]
        with pytest.raises(NotFoundError):
            manager.acknowledge_instruction(
                "missing", Acknowledgement(understood=True, verification_method="written", verified_by="x")
            )

    def test_instruction_requires_competencies(self):
        manager = QCManager()
        with pytest.raises(PrecheckFailedError):
            manager.issue_instruction(
                StaffInstructionCreate(staff_id="w-12", instructions="x", referenced_standards=["AWS D1.1"])
            )
        assert manager.staff_instructions == []

    def test_package_audit_requires_evidence(self):
        manager = QCManager()
        finding = AuditFindingDetail(category="weld", description="Undercut", severity="minor")

        with pytest.raises(PrecheckFailedError):
            manager.record_package_audit(
                PackageAuditCreate(
                    package_id="P-1", auditor_id="a", findings=[finding], quality_metrics=GOOD_METRICS
                )
            )

        finding.evidence_attachments = ["photo-1"]
        audit = manager.record_package_audit(
            PackageAuditCreate(
                package_id="P-1",
                auditor_id="a",
                findings=[finding],
                corrective_actions=[
                    CorrectiveAction(finding="Undercut", action="Grind", preventive_measures=["Retrain"])
                ],
                quality_metrics=GOOD_METRICS,
            )
        )
        assert manager.package_audits == [audit]

    def test_third_party_queue(self):
        manager = QCManager()
        weak = GOOD_METRICS.model_copy(update={"timeliness": 0.5})

        assert not manager.submit_for_third_party_inspection("P-1", weak)
        assert manager.submit_for_third_party_inspection("P-1", GOOD_METRICS)
        assert not manager.submit_for_third_party_inspection("P-1", GOOD_METRICS)

        assert manager.third_party_queue == ["P-1"]
        assert manager.quality_trends("P-1") == [GOOD_METRICS]
        assert manager.latest_metrics("P-1") == GOOD_METRICS
        assert manager.latest_metrics("P-2") is None


class TestAuditRegister:
    def test_open_findings(self):
        register = AuditRegister()
        audit = register.create_audit(AuditCreate(auditor="client-rep", type="client"))
        due = utcnow() + timedelta(days=7)

        register.add_finding(
            audit.id,
            AuditFinding(description="Missing MTRs", severity="major", responsible_party="supplier",
                         corrective_action="Request MTRs", due_date=due),
        )
        register.add_finding(
            audit.id,
            AuditFinding(description="Old calibration", severity="minor", responsible_party="qc",
                         corrective_action="Recalibrate", due_date=due, status="closed"),
        )

        assert [f.description for f in register.open_findings()] == ["Missing MTRs"]
        assert register.add_finding("missing", register.open_findings()[0]) is None


class TestNDETracker:
    def test_request_report_verify(self):
        tracker = NDETracker()
        request = tracker.request_nde(NDERequestCreate(weld_id="W-7", method="UT", requested_by="qc"))
        assert tracker.pending_requests() == [request]

        report = tracker.submit_report(NDEReportCreate(request_id=request.id, inspector="lvl2", results="Accept"))

        assert request.status == "completed"
        assert tracker.pending_requests() == []
        assert tracker.reports_for_weld("W-7") == [report]
        assert not report.verified
        assert tracker.verify_report(report.id).verified
        assert tracker.verify_report("missing") is None

    def test_report_for_unknown_request(self):
        with pytest.raises(NotFoundError):
            NDETracker().submit_report(NDEReportCreate(request_id="missing", inspector="x", results="Reject"))


class TestConsumables:
    def test_upsert_and_low_stock_events(self):
        inventory = ConsumablesInventory()
        alerts = []
        inventory.subscribe(lambda e: alerts.append(e.data) if e.name == "low_stock" else None)

        rod = inventory.update_rod_inventory(_rod())
        assert alerts == []

        updated = inventory.update_rod_inventory(_rod(quantity=20))

        assert updated is rod
        assert rod.quantity == 20
        assert inventory.low_stock() == [rod]
        assert alerts == [
            {
                "type": "SMAW",
                "classification": "E7018 H4R",
                "size": '1/8"',
                "quantity": 20,
                "minimum": 20,
                "job_number": "J-1001",
            }
        ]

    def test_inventory_by_job(self):
        inventory = ConsumablesInventory()
        inventory.set_job_number("J-1001")
        inventory.update_rod_inventory(_rod())
        inventory.update_rod_inventory(_rod(job_number="J-2"))
        inventory.update_fc_wire_inventory(FCWire(size="0.045", spools=4, job_number="J-1001", location="A"))
        wire = inventory.update_fc_wire_inventory(FCWire(size="0.045", spools=2, job_number="J-1001", location="A"))

        current = inventory.current_inventory()

        assert len(current.welding_rods) == 1
        assert current.fc_wire == [wire]
        assert wire.spools == 2
        assert len(inventory.inventory_by_job("J-2").welding_rods) == 1


class TestShiftLog:
    def test_turnover_and_ncr(self):
        log = ShiftLog()
        turnover = log.record_turnover(TurnoverLogCreate(shift="night", supervisor="sam"))
        ncr = log.create_ncr(NonConformanceReportCreate(reported_by="sam", description="Wrong filler metal"))

        assert log.turnover_logs == [turnover]
        assert ncr.status == "open"
        assert log.update_ncr_status(ncr.id, "investigating").status == "investigating"
        assert log.update_ncr_status("missing", "closed") is None

    def test_weld_map_accumulates_results(self):
        log = ShiftLog()
        tracker = NDETracker()
        request = tracker.request_nde(NDERequestCreate(weld_id="W-7", method="MT", requested_by="qc"))
        first = tracker.submit_report(NDEReportCreate(request_id=request.id, inspector="a", results="Accept"))
        second = tracker.submit_report(NDEReportCreate(request_id=request.id, inspector="b", results="Accept"))

        log.update_weld_map("P-1", first, "qc-lead")
        weld_map = log.update_weld_map("P-1", second, "someone-else")

        assert log.weld_maps == [weld_map]
        assert weld_map.verified_by == "qc-lead"
        assert [r.id for r in weld_map.nde_results] == [first.id, second.id]

    def test_code_work_review(self):
        log = ShiftLog()
        assert log.last_code_work_review("P-1") is None

        reviewed_at = log.review_code_work_package("P-1")

        assert log.last_code_work_review("P-1") == reviewed_at
