"""Shift supervisor log: turnovers, non-conformance reports, weld maps and code-work reviews."""
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..schemas.base import utcnow
from ..schemas.qc import (
    NDEReport,
    NonConformanceReport,
    NonConformanceReportCreate,
    TurnoverLog,
    TurnoverLogCreate,
    WeldMap,
)
from .events import EventEmitter, Listener


class ShiftLog:
    def __init__(self) -> None:
        self._turnovers: List[TurnoverLog] = []
        self._ncrs: List[NonConformanceReport] = []
        self._weld_maps: List[WeldMap] = []
        self._code_work_reviews: Dict[str, datetime] = {}
        self.events = EventEmitter("shift_log")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def turnover_logs(self) -> List[TurnoverLog]:
        return list(self._turnovers)

    @property
    def nc_reports(self) -> List[NonConformanceReport]:
        return list(self._ncrs)

    @property
    def weld_maps(self) -> List[WeldMap]:
        return list(self._weld_maps)

    def record_turnover(self, data: TurnoverLogCreate) -> TurnoverLog:
        log = TurnoverLog(**data.model_dump())
        self._turnovers.append(log)
        self.events.emit("turnover_logs", self.turnover_logs)
        return log

    def create_ncr(self, data: NonConformanceReportCreate) -> NonConformanceReport:
        ncr = NonConformanceReport(**data.model_dump())
        self._ncrs.append(ncr)
        self.events.emit("nc_reports", self.nc_reports)
        return ncr

    def update_ncr_status(self, ncr_id: str, status: str) -> Optional[NonConformanceReport]:
        ncr = next((n for n in self._ncrs if n.id == ncr_id), None)
        if ncr is None:
            return None
        ncr.status = status
        self.events.emit("nc_reports", self.nc_reports)
        return ncr

    def update_weld_map(self, package_id: str, nde_result: NDEReport, verified_by: str) -> WeldMap:
        weld_map = self.weld_map_for(package_id)
        if weld_map is None:
            weld_map = WeldMap(package_id=package_id, verified_by=verified_by)
            self._weld_maps.append(weld_map)
        weld_map.nde_results.append(nde_result)
        weld_map.last_updated = utcnow()
        self.events.emit("weld_maps", self.weld_maps)
        return weld_map

    def weld_map_for(self, package_id: str) -> Optional[WeldMap]:
        return next((w for w in self._weld_maps if w.package_id == package_id), None)

    def review_code_work_package(self, package_id: str) -> datetime:
        reviewed_at = utcnow()
        self._code_work_reviews[package_id] = reviewed_at
        self.events.emit("code_work_reviews", dict(self._code_work_reviews))
        return reviewed_at

    def last_code_work_review(self, package_id: str) -> Optional[datetime]:
        return self._code_work_reviews.get(package_id)
