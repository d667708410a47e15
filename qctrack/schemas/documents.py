from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .base import Record, utcnow


DocumentType = Literal["spec", "code", "requirement"]
DocumentStatus = Literal["draft", "active", "archived"]


class DocumentMetadata(BaseModel):
    author: str
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    related_documents: List[str] = Field(default_factory=list)
    job_numbers: List[str] = Field(default_factory=list)


class RevisionEntry(BaseModel):
    version: int
    date: datetime = Field(default_factory=utcnow)
    author: str
    changes: str


class Document(Record):
    title: str
    type: DocumentType
    content: str
    version: int = 1
    status: DocumentStatus = "draft"
    metadata: DocumentMetadata
    revision_history: List[RevisionEntry] = Field(default_factory=list)


class DocumentCreate(BaseModel):
    title: str
    type: DocumentType
    content: str = ""
    metadata: DocumentMetadata


class DocumentUpdate(BaseModel):
    title: Optional[str] = None
    type: Optional[DocumentType] = None
    content: Optional[str] = None
    status: Optional[DocumentStatus] = None
    metadata: Optional[DocumentMetadata] = None


class ArchiveRequest(BaseModel):
    reason: str


class LinkRequest(BaseModel):
    target_id: str
