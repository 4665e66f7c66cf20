from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Literal, List
from datetime import datetime

Category = Literal["pothole", "streetlight", "sanitation", "traffic", "vandalism", "other"]
Status = Literal["submitted", "in_progress", "resolved", "closed"]
Priority = Literal["low", "medium", "high", "urgent"]
UpdateKind = Literal["status_change", "assignment", "comment"]
BulkAction = Literal["mark_in_progress", "mark_resolved", "set_high_priority", "set_medium_priority", "assign_to_me"]


class ReportIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=4000)
    category: Category
    priority: Priority = "medium"
    location_address: str = Field(min_length=1, max_length=300)
    citizen_name: Optional[str] = None
    citizen_email: Optional[EmailStr] = None
    citizen_phone: Optional[str] = None

    @field_validator("citizen_name", "citizen_email", "citizen_phone", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        # the form posts empty strings for untouched contact fields
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AdminLite(BaseModel):
    """Assignee / updater summary inlined on issue rows."""
    id: int
    full_name: str
    email: Optional[str] = None
    role: Optional[str] = None


class IssuePublicOut(BaseModel):
    id: int
    title: str
    description: str
    category: Category
    status: Status
    priority: Priority
    location_address: str
    assigned_department: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class IssueOut(IssuePublicOut):
    assigned_to: Optional[int] = None
    assignee: Optional[AdminLite] = None
    citizen_name: Optional[str] = None
    citizen_email: Optional[str] = None
    citizen_phone: Optional[str] = None


class ReportOut(IssuePublicOut):
    track_url: str


class IssueUpdateIn(BaseModel):
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    comment: Optional[str] = None


class AssignmentIn(BaseModel):
    assigned_to: Optional[int] = None


class BulkActionIn(BaseModel):
    issue_ids: List[int] = Field(min_length=1)
    action: BulkAction


class BulkActionOut(BaseModel):
    action: BulkAction
    updated: int
    audit_records: int


class IssueUpdateOut(BaseModel):
    id: int
    issue_id: int
    update_type: UpdateKind
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    comment: Optional[str] = None
    updated_by: Optional[int] = None
    updater: Optional[AdminLite] = None
    created_at: datetime


class IssueDetailOut(BaseModel):
    issue: IssueOut
    updates: list[IssueUpdateOut]


class FilterChip(BaseModel):
    key: str
    value: str
    remove_url: str


class IssueListOut(BaseModel):
    items: list[IssueOut]
    total: int
    filters: dict[str, str]
    active_filter_count: int
    chips: list[FilterChip]
    location: str
    departments: list[str] = []
    admin_users: list[AdminLite] = []
    error: Optional[str] = None
