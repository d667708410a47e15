"""
Derived QC metrics over the inspection and schedule stores.
Recomputed on every call; nothing is cached.
"""
from collections import Counter

from ..schemas.analytics import AnalyticsSummary, SeverityHistogram
from ..schemas.base import as_utc
from .inspections import InspectionStore
from .schedule import ScheduleStore


class AnalyticsView:
    def __init__(self, inspections: InspectionStore, schedule: ScheduleStore) -> None:
        self._inspections = inspections
        self._schedule = schedule

    def summary(self) -> AnalyticsSummary:
        deficiencies = self._inspections.deficiencies
        inspections = self._schedule.inspections

        resolved = [d for d in deficiencies if d.status == "resolved"]
        resolution_hours = [
            (as_utc(d.updated_at) - as_utc(d.created_at)).total_seconds() / 3600 for d in resolved
        ]
        severity = Counter(d.severity for d in deficiencies)

        return AnalyticsSummary(
            total_inspections=len(inspections),
            completed_inspections=sum(1 for i in inspections if i.status == "completed"),
            open_deficiencies=len(deficiencies) - len(resolved),
            resolved_deficiencies=len(resolved),
            average_resolution_time=sum(resolution_hours) / len(resolution_hours) if resolution_hours else 0.0,
            deficiencies_by_severity=SeverityHistogram(
                low=severity["low"], medium=severity["medium"], high=severity["high"]
            ),
            deficiencies_by_status=dict(Counter(d.status for d in deficiencies)),
            inspections_by_status=dict(Counter(i.status for i in inspections)),
            location_heatmap=dict(Counter(d.location for d in deficiencies)),
        )
