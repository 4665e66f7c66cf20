# cityreport/services/presenters.py
from typing import Optional
from cityreport.models.issue import Issue
from cityreport.models.issue_update import IssueUpdate
from cityreport.models.notification import Notification
from cityreport.models.user import AdminUser


def _val(v):
    return v.value if hasattr(v, "value") else v


def admin_lite(admin: Optional[AdminUser]) -> Optional[dict]:
    if not admin:
        return None
    return {
        "id": admin.id,
        "full_name": admin.full_name,
        "email": admin.email,
        "role": _val(admin.role),
    }


def public_issue_dict(issue: Issue) -> dict:
    return {
        "id": issue.id,
        "title": issue.title,
        "description": issue.description,
        "category": _val(issue.category),
        "status": _val(issue.status),
        "priority": _val(issue.priority),
        "location_address": issue.location_address,
        "assigned_department": issue.assigned_department,
        "created_at": issue.created_at,
        "updated_at": issue.updated_at,
        "resolved_at": issue.resolved_at,
    }


def issue_dict(issue: Issue) -> dict:
    d = public_issue_dict(issue)
    d.update({
        "assigned_to": issue.assigned_to,
        "assignee": admin_lite(issue.assignee),
        "citizen_name": issue.citizen_name,
        "citizen_email": issue.citizen_email,
        "citizen_phone": issue.citizen_phone,
    })
    return d


def update_dict(u: IssueUpdate) -> dict:
    updater = admin_lite(u.updater)
    if updater:
        updater.pop("role")
    return {
        "id": u.id,
        "issue_id": u.issue_id,
        "update_type": _val(u.update_type),
        "old_value": u.old_value,
        "new_value": u.new_value,
        "comment": u.comment,
        "updated_by": u.updated_by,
        "updater": updater,
        "created_at": u.created_at,
    }


def notification_dict(n: Notification) -> dict:
    issue = None
    if n.issue is not None:
        issue = {
            "title": n.issue.title,
            "status": _val(n.issue.status),
            "category": _val(n.issue.category),
            "location_address": n.issue.location_address,
        }
    return {
        "id": n.id,
        "recipient_id": n.recipient_id,
        "type": _val(n.type),
        "title": n.title,
        "message": n.message,
        "is_read": bool(n.is_read),
        "issue_id": n.issue_id,
        "email_sent": bool(n.email_sent),
        "created_at": n.created_at,
        "issue": issue,
    }
