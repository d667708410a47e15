from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .base import Record, new_id, utcnow


Severity = Literal["low", "medium", "high"]


class Deficiency(Record):
    description: str
    severity: Severity
    location: str
    status: str = "open"  # open|in-progress|resolved|... (free form)
    photos: List[str] = Field(default_factory=list)
    related_documents: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    nde_reports: List[str] = Field(default_factory=list)
    weld_map_reference: Optional[str] = None


class ChecklistItem(BaseModel):
    id: str = Field(default_factory=new_id)
    description: str
    required: bool = True
    reference: Optional[str] = None
    photos: List[str] = Field(default_factory=list)


class InspectionChecklist(BaseModel):
    id: str = Field(default_factory=new_id)
    items: List[ChecklistItem] = Field(default_factory=list)
    completed_items: List[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow)


class MissedAnalysis(BaseModel):
    deficiency_id: str
    photo_id: str
    error: str
    recorded_at: datetime = Field(default_factory=utcnow)


class DeficiencyCreate(BaseModel):
    description: str
    severity: Severity
    location: str = ""
    photos: List[str] = Field(default_factory=list)


class StatusUpdate(BaseModel):
    status: str
    comment: Optional[str] = None


class AssignmentRequest(BaseModel):
    assignee: str
    due_date: Optional[datetime] = None


class ChecklistItemCreate(BaseModel):
    description: str
    required: bool = True
    reference: Optional[str] = None
    photos: List[str] = Field(default_factory=list)


class LocationRequest(BaseModel):
    location: str
