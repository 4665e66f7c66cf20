# cityreport/schemas/notification.py
from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

NotificationKind = Literal["issue_submitted", "status_update", "assignment"]


class NotificationIssueLite(BaseModel):
    title: str
    status: str
    category: str
    location_address: Optional[str] = None


class NotificationOut(BaseModel):
    id: int
    recipient_id: int
    type: NotificationKind
    title: str
    message: str
    is_read: bool
    issue_id: Optional[int] = None
    email_sent: bool = False
    created_at: datetime
    issue: Optional[NotificationIssueLite] = None


class NotificationListOut(BaseModel):
    items: list[NotificationOut]
    unread_count: int
    error: Optional[str] = None


class PreferencesIn(BaseModel):
    email_notifications: Optional[bool] = None
    new_issues: Optional[bool] = None
    status_changes: Optional[bool] = None
    assignments: Optional[bool] = None
    high_priority_only: Optional[bool] = None


class PreferencesOut(BaseModel):
    email_notifications: bool = True
    new_issues: bool = True
    status_changes: bool = True
    assignments: bool = True
    high_priority_only: bool = False
