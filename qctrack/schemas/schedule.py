from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .base import Record


InspectionStatus = Literal["pending", "in-progress", "completed", "failed", "cancelled"]
Priority = Literal["low", "medium", "high"]


class NDERequirement(BaseModel):
    type: str
    required: bool = True
    completed: bool = False


class ScheduledInspection(Record):
    title: str
    date: datetime
    location: str
    status: InspectionStatus = "pending"
    assigned_to: str = ""
    checklist: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    priority: Priority = "medium"
    estimated_duration: int = 60  # minutes
    actual_duration: Optional[int] = None
    started_at: Optional[datetime] = None
    prerequisites: List[str] = Field(default_factory=list)
    job_number: str
    weld_map_references: List[str] = Field(default_factory=list)
    nde_requirements: List[NDERequirement] = Field(default_factory=list)


class InspectionCreate(BaseModel):
    title: str
    date: datetime
    location: str
    job_number: str
    assigned_to: str = ""
    checklist: List[str] = Field(default_factory=list)
    priority: Priority = "medium"
    estimated_duration: int = 60
    prerequisites: List[str] = Field(default_factory=list)
    weld_map_references: List[str] = Field(default_factory=list)
    nde_requirements: List[NDERequirement] = Field(default_factory=list)


class InspectionStatusUpdate(BaseModel):
    status: InspectionStatus
    comment: Optional[str] = None
