"""Internal and client audit register."""
from typing import Callable, List, Optional

from ..schemas.qc import AuditCreate, AuditFinding, AuditItem
from .events import EventEmitter, Listener


class AuditRegister:
    def __init__(self) -> None:
        self._audits: List[AuditItem] = []
        self.events = EventEmitter("audits")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def audits(self) -> List[AuditItem]:
        return list(self._audits)

    def create_audit(self, data: AuditCreate) -> AuditItem:
        audit = AuditItem(**data.model_dump())
        self._audits.append(audit)
        self.events.emit("audits", self.audits)
        return audit

    def get(self, audit_id: str) -> Optional[AuditItem]:
        return next((a for a in self._audits if a.id == audit_id), None)

    def add_finding(self, audit_id: str, finding: AuditFinding) -> Optional[AuditItem]:
        audit = self.get(audit_id)
        if audit is None:
            return None
        audit.findings.append(finding)
        self.events.emit("audits", self.audits)
        return audit

    def open_findings(self) -> List[AuditFinding]:
        return [f for a in self._audits for f in a.findings if f.status != "closed"]
