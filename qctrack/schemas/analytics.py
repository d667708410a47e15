from typing import Dict

from pydantic import BaseModel, Field


class SeverityHistogram(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class AnalyticsSummary(BaseModel):
    total_inspections: int
    completed_inspections: int
    open_deficiencies: int
    resolved_deficiencies: int
    average_resolution_time: float  # hours
    deficiencies_by_severity: SeverityHistogram
    deficiencies_by_status: Dict[str, int] = Field(default_factory=dict)
    inspections_by_status: Dict[str, int] = Field(default_factory=dict)
    location_heatmap: Dict[str, int] = Field(default_factory=dict)
