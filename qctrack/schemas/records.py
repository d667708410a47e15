"""Row shapes of the relational backing store."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime


class DocumentRowCreate(BaseModel):
    title: str
    type: Literal["spec", "code", "requirement"]
    content: str = ""
    version: int = 1
    status: Literal["draft", "active", "archived"] = "draft"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    revision_history: List[Dict[str, Any]] = Field(default_factory=list)
    created_by: Optional[str] = None


class DocumentRowOut(RowOut, DocumentRowCreate):
    metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("metadata_json", "metadata")
    )
    updated_at: datetime


class InspectionRowCreate(BaseModel):
    title: str
    date: datetime
    location: str
    status: Literal["pending", "in-progress", "completed", "failed", "cancelled"] = "pending"
    assigned_to: Optional[str] = None
    checklist: List[Dict[str, Any]] = Field(default_factory=list)
    priority: Literal["low", "medium", "high"] = "medium"
    job_number: str
    created_by: Optional[str] = None


class InspectionRowOut(RowOut, InspectionRowCreate):
    updated_at: datetime


class DeficiencyRowCreate(BaseModel):
    description: str
    severity: Literal["low", "medium", "high"]
    location: str
    status: Literal["open", "in-progress", "resolved"] = "open"
    inspection_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    created_by: Optional[str] = None


class DeficiencyRowOut(RowOut, DeficiencyRowCreate):
    updated_at: datetime


class PhotoRowCreate(BaseModel):
    url: str
    description: Optional[str] = None
    location: str = ""
    deficiency_id: Optional[str] = None
    inspection_id: Optional[str] = None
    job_number: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    analysis: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = None


class PhotoRowOut(RowOut, PhotoRowCreate):
    metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("metadata_json", "metadata")
    )
    updated_at: datetime


class NotificationRowCreate(BaseModel):
    title: str
    message: str
    type: Literal["deficiency", "inspection", "task", "system"]
    severity: Literal["info", "warning", "critical"] = "info"
    read: bool = False
    related_id: Optional[str] = None
    user_id: str


class NotificationRowOut(RowOut, NotificationRowCreate):
    pass


class UploadedImage(BaseModel):
    url: str
    key: str
    width: int
    height: int
    content_type: Optional[str] = None
