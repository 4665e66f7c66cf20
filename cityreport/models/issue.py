# File: cityreport/models/issue.py
from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import String, Enum, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cityreport.db.base import Base, utcnow
from cityreport.models.user import AdminUser

class IssueCategory(PyEnum):
    pothole = "pothole"
    streetlight = "streetlight"
    sanitation = "sanitation"
    traffic = "traffic"
    vandalism = "vandalism"
    other = "other"

class IssueStatus(PyEnum):
    submitted = "submitted"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"

class IssuePriority(PyEnum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"

class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(String(4000))
    category: Mapped[IssueCategory] = mapped_column(Enum(IssueCategory), index=True)
    status: Mapped[IssueStatus] = mapped_column(Enum(IssueStatus), default=IssueStatus.submitted, index=True)
    priority: Mapped[IssuePriority] = mapped_column(Enum(IssuePriority), default=IssuePriority.medium, index=True)

    location_address: Mapped[str] = mapped_column(String(300))
    assigned_department: Mapped[str | None] = mapped_column(String(120), index=True, nullable=True)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("admin_users.id", ondelete="SET NULL"), index=True, nullable=True)

    citizen_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    citizen_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    citizen_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    assignee: Mapped[AdminUser | None] = relationship(lazy="joined")
