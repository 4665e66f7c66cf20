# File: cityreport/models/issue_update.py
from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import String, Enum, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cityreport.db.base import Base, utcnow
from cityreport.models.user import AdminUser

class UpdateType(PyEnum):
    status_change = "status_change"
    assignment = "assignment"
    comment = "comment"

class IssueUpdate(Base):
    """Append-only history row; one per changed field or comment."""
    __tablename__ = "issue_updates"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    issue_id: Mapped[int] = mapped_column(ForeignKey("issues.id", ondelete="CASCADE"), index=True, nullable=False)
    update_type: Mapped[UpdateType] = mapped_column(Enum(UpdateType), nullable=False)
    old_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    new_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    comment: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    updater: Mapped[AdminUser | None] = relationship(lazy="joined")
