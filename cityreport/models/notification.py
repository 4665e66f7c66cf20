# File: cityreport/models/notification.py
from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import String, Boolean, Enum, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cityreport.db.base import Base, utcnow
from cityreport.models.issue import Issue

class NotificationType(PyEnum):
    issue_submitted = "issue_submitted"
    status_update = "status_update"
    assignment = "assignment"

class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(ForeignKey("admin_users.id", ondelete="CASCADE"), index=True, nullable=False)
    type: Mapped[NotificationType] = mapped_column(Enum(NotificationType), nullable=False)
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(String(1000))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", index=True)
    issue_id: Mapped[int | None] = mapped_column(ForeignKey("issues.id", ondelete="SET NULL"), nullable=True)
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    issue: Mapped[Issue | None] = relationship(lazy="joined")

class NotificationPreference(Base):
    # one row per admin; absent row means defaults
    __tablename__ = "notification_preferences"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    admin_user_id: Mapped[int] = mapped_column(ForeignKey("admin_users.id", ondelete="CASCADE"), unique=True, index=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    new_issues: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    status_changes: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    assignments: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    high_priority_only: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
