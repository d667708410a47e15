"""
Non-destructive examination requests and reports.

Submitting a report completes its request; verification is a separate step.
"""
from typing import Callable, List, Optional

from ..errors import NotFoundError
from ..schemas.qc import NDEReport, NDEReportCreate, NDERequest, NDERequestCreate
from .events import EventEmitter, Listener


class NDETracker:
    def __init__(self) -> None:
        self._requests: List[NDERequest] = []
        self._reports: List[NDEReport] = []
        self.events = EventEmitter("nde")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def requests(self) -> List[NDERequest]:
        return list(self._requests)

    @property
    def reports(self) -> List[NDEReport]:
        return list(self._reports)

    def request_nde(self, data: NDERequestCreate) -> NDERequest:
        request = NDERequest(**data.model_dump())
        self._requests.append(request)
        self.events.emit("requests", self.requests)
        return request

    def submit_report(self, data: NDEReportCreate) -> NDEReport:
        request = self.get_request(data.request_id)
        if request is None:
            raise NotFoundError("NDERequest", data.request_id)
        report = NDEReport(**data.model_dump())
        self._reports.append(report)
        request.status = "completed"
        self.events.emit("requests", self.requests)
        self.events.emit("reports", self.reports)
        return report

    def verify_report(self, report_id: str) -> Optional[NDEReport]:
        report = self.get_report(report_id)
        if report is None:
            return None
        report.verified = True
        self.events.emit("reports", self.reports)
        return report

    def get_request(self, request_id: str) -> Optional[NDERequest]:
        return next((r for r in self._requests if r.id == request_id), None)

    def get_report(self, report_id: str) -> Optional[NDEReport]:
        return next((r for r in self._reports if r.id == report_id), None)

    def pending_requests(self) -> List[NDERequest]:
        return [r for r in self._requests if r.status != "completed"]

    def reports_for_weld(self, weld_id: str) -> List[NDEReport]:
        request_ids = {r.id for r in self._requests if r.weld_id == weld_id}
        return [r for r in self._reports if r.request_id in request_ids]
