# cityreport/services/bulk.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional
from sqlalchemy.orm import Session
from cityreport.db.base import utcnow
from cityreport.models.issue import Issue, IssueStatus, IssuePriority
from cityreport.models.issue_update import IssueUpdate, UpdateType
from cityreport.models.user import AdminUser

BULK_ACTIONS = (
    "mark_in_progress",
    "mark_resolved",
    "set_high_priority",
    "set_medium_priority",
    "assign_to_me",
)


class UnknownIssuesError(LookupError):
    def __init__(self, missing: list[int]):
        super().__init__(f"Some issue IDs not found: {missing}")
        self.missing = missing


class Selection:
    """Checked issue ids on the list page, in click order without duplicates."""

    def __init__(self, ids: Iterable[int] = ()):
        self._ids: list[int] = list(dict.fromkeys(ids))

    @property
    def ids(self) -> list[int]:
        return list(self._ids)

    def __len__(self):
        return len(self._ids)

    def __contains__(self, issue_id):
        return issue_id in self._ids

    def toggle(self, issue_id: int):
        if issue_id in self._ids:
            self._ids.remove(issue_id)
        else:
            self._ids.append(issue_id)

    def toggle_all(self, visible_ids: Iterable[int]):
        visible = list(dict.fromkeys(visible_ids))
        if len(self._ids) == len(visible):
            self._ids = []
        else:
            self._ids = visible

    def clear(self):
        self._ids = []


@dataclass
class BulkResult:
    action: str
    issues: list[Issue] = field(default_factory=list)
    records: list[IssueUpdate] = field(default_factory=list)


def bulk_comment(action: str) -> str:
    # only the first underscore becomes a space
    return f"Bulk action: {action.replace('_', ' ', 1)}"


def bulk_payload(action: str, actor: AdminUser, now: datetime) -> tuple[dict, UpdateType]:
    """Field updates for one bulk action, and the history type they are filed under."""
    if action == "mark_in_progress":
        return {"status": IssueStatus.in_progress}, UpdateType.status_change
    if action == "mark_resolved":
        return {"status": IssueStatus.resolved, "resolved_at": now}, UpdateType.status_change
    if action == "set_high_priority":
        return {"priority": IssuePriority.high}, UpdateType.assignment
    if action == "set_medium_priority":
        return {"priority": IssuePriority.medium}, UpdateType.assignment
    if action == "assign_to_me":
        return {"assigned_to": actor.id}, UpdateType.assignment
    raise ValueError(f"Unknown bulk action: {action}")


def _old_value(issue: Issue, column: str) -> Optional[str]:
    if column == "assigned_to":
        return "Previously assigned" if issue.assigned_to else "Unassigned"
    v = getattr(issue, column)
    return v.value if hasattr(v, "value") else v


def _new_value(payload: dict, column: str, actor: AdminUser) -> str:
    if column == "assigned_to":
        return actor.full_name
    v = payload[column]
    return v.value if hasattr(v, "value") else str(v)


def apply_bulk_action(
    db: Session,
    selection: Selection,
    action: str,
    actor: AdminUser,
    now: Optional[datetime] = None,
) -> BulkResult:
    """Apply `action` to every selected issue with one UPDATE, then stage one
    audit row per issue. The caller commits both together."""
    now = now or utcnow()
    ids = selection.ids
    payload, update_type = bulk_payload(action, actor, now)
    column = next(iter(payload))

    issues = db.query(Issue).filter(Issue.id.in_(ids)).all()
    found = {i.id for i in issues}
    missing = [i for i in ids if i not in found]
    if missing:
        raise UnknownIssuesError(missing)

    old_values = {i.id: _old_value(i, column) for i in issues}

    (
        db.query(Issue)
        .filter(Issue.id.in_(ids))
        .update({**payload, "updated_at": now}, synchronize_session="fetch")
    )

    comment = bulk_comment(action)
    new_value = _new_value(payload, column, actor)
    records = [
        IssueUpdate(
            issue_id=issue_id,
            update_type=update_type,
            old_value=old_values[issue_id],
            new_value=new_value,
            comment=comment,
            updated_by=actor.id,
            created_at=now,
        )
        for issue_id in ids
    ]
    db.add_all(records)
    return BulkResult(action=action, issues=issues, records=records)
