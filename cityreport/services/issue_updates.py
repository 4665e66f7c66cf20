# cityreport/services/issue_updates.py
"""Issue mutations and the audit rows that record them.

Nothing here commits. The caller commits the issue change together with its
audit rows, so a failed write leaves neither behind.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from cityreport.db.base import utcnow
from cityreport.models.issue import Issue, IssueStatus, IssuePriority
from cityreport.models.issue_update import IssueUpdate, UpdateType
from cityreport.models.user import AdminUser


def apply_issue_update(
    db: Session,
    issue: Issue,
    actor_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[IssueUpdate]:
    """Apply the status/priority form to `issue`.

    One audit row per field that actually changed, plus one for a non-blank
    comment. Moving into ``resolved`` stamps ``resolved_at``. Returns the new
    rows (already added to the session); an empty list means nothing changed.
    """
    now = now or utcnow()
    records: list[IssueUpdate] = []

    if status is not None and status != issue.status.value:
        old_status = issue.status.value
        issue.status = IssueStatus(status)
        if status == IssueStatus.resolved.value:
            issue.resolved_at = now
        records.append(IssueUpdate(
            issue_id=issue.id,
            update_type=UpdateType.status_change,
            old_value=old_status,
            new_value=status,
            updated_by=actor_id,
            created_at=now,
        ))

    if priority is not None and priority != issue.priority.value:
        old_priority = issue.priority.value
        issue.priority = IssuePriority(priority)
        # priority edits are filed under "assignment" in the history
        records.append(IssueUpdate(
            issue_id=issue.id,
            update_type=UpdateType.assignment,
            old_value=old_priority,
            new_value=priority,
            updated_by=actor_id,
            created_at=now,
        ))

    if records:
        issue.updated_at = now

    text = (comment or "").strip()
    if text:
        records.append(IssueUpdate(
            issue_id=issue.id,
            update_type=UpdateType.comment,
            comment=text,
            updated_by=actor_id,
            created_at=now,
        ))

    db.add_all(records)
    return records


def apply_assignment(
    db: Session,
    issue: Issue,
    actor_id: int,
    assignee: Optional[AdminUser],
    now: Optional[datetime] = None,
) -> Optional[IssueUpdate]:
    """Point `issue` at `assignee` (or clear it). None when nothing changed."""
    new_id = assignee.id if assignee else None
    if new_id == issue.assigned_to:
        return None

    now = now or utcnow()
    old_value = "Previously assigned" if issue.assigned_to else "Unassigned"
    issue.assigned_to = new_id
    issue.updated_at = now

    record = IssueUpdate(
        issue_id=issue.id,
        update_type=UpdateType.assignment,
        old_value=old_value,
        new_value=assignee.full_name if assignee else "Unassigned",
        comment=f"Assigned to {assignee.full_name} ({assignee.email})" if assignee else "Assignment removed",
        updated_by=actor_id,
        created_at=now,
    )
    db.add(record)
    return record
