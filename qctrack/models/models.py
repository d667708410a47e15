from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base
from ..schemas.base import new_id, utcnow


def id_pk() -> Mapped[str]:
    return mapped_column(String(32), primary_key=True, default=new_id)


class DocumentRow(Base):
    __tablename__ = "documents"

    id: Mapped[str] = id_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # spec|code|requirement
    content: Mapped[str] = mapped_column(Text, default="")
    version: Mapped[int] = mapped_column(Integer, default=1)
    status: Mapped[str] = mapped_column(String(20), default="draft")  # draft|active|archived
    metadata_json: Mapped[Optional[dict]] = mapped_column("metadata", JSON, default=dict)
    revision_history: Mapped[Optional[list]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(100))


class InspectionRow(Base):
    __tablename__ = "inspections"

    id: Mapped[str] = id_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending|in-progress|completed|failed|cancelled
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100))
    checklist: Mapped[Optional[list]] = mapped_column(JSON, default=list)
    priority: Mapped[str] = mapped_column(String(10), default="medium")
    job_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(100))


class DeficiencyRow(Base):
    __tablename__ = "deficiencies"

    id: Mapped[str] = id_pk()
    description: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)  # low|medium|high
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="open")
    inspection_id: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100))
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(100))


class PhotoRow(Base):
    __tablename__ = "photos"

    id: Mapped[str] = id_pk()
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    location: Mapped[str] = mapped_column(String(255), default="")
    deficiency_id: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    inspection_id: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    job_number: Mapped[str] = mapped_column(String(50), default="")
    metadata_json: Mapped[Optional[dict]] = mapped_column("metadata", JSON, default=dict)
    analysis: Mapped[Optional[dict]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(100))


class NotificationRow(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = id_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # deficiency|inspection|task|system
    severity: Mapped[str] = mapped_column(String(10), default="info")  # info|warning|critical
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    related_id: Mapped[Optional[str]] = mapped_column(String(32))
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_notifications_user_read", "user_id", "read"),
        Index("idx_notifications_created", "created_at"),
    )
