# cityreport/services/notifications.py
import logging
from typing import Optional
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session
from cityreport.db.base import utcnow
from cityreport.db.session import SessionLocal
from cityreport.models.issue import Issue, IssuePriority
from cityreport.models.notification import Notification, NotificationPreference, NotificationType
from cityreport.models.user import AdminUser
from cityreport.schemas.notification import NotificationOut
from cityreport.services.notify_email import send_notification_email
from cityreport.services.presenters import notification_dict
from cityreport.services.realtime import hub

logger = logging.getLogger(__name__)

FEED_LIMIT = 20
PREFERENCE_FIELDS = ("email_notifications", "new_issues", "status_changes", "assignments", "high_priority_only")
DEFAULT_PREFERENCES = {
    "email_notifications": True,
    "new_issues": True,
    "status_changes": True,
    "assignments": True,
    "high_priority_only": False,
}
HIGH_PRIORITIES = {IssuePriority.high, IssuePriority.urgent}

_PREF_FOR_TYPE = {
    NotificationType.issue_submitted: "new_issues",
    NotificationType.status_update: "status_changes",
    NotificationType.assignment: "assignments",
}


# ---------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------

def get_preferences(db: Session, admin_id: int) -> dict:
    row = db.query(NotificationPreference).filter(NotificationPreference.admin_user_id == admin_id).first()
    if not row:
        return dict(DEFAULT_PREFERENCES)
    return {k: bool(getattr(row, k)) for k in PREFERENCE_FIELDS}


def save_preferences(db: Session, admin_id: int, changes: dict) -> dict:
    row = db.query(NotificationPreference).filter(NotificationPreference.admin_user_id == admin_id).first()
    if not row:
        row = NotificationPreference(admin_user_id=admin_id, **DEFAULT_PREFERENCES)
        db.add(row)
    for k in PREFERENCE_FIELDS:
        if changes.get(k) is not None:
            setattr(row, k, bool(changes[k]))
    row.updated_at = utcnow()
    db.commit()
    return {k: bool(getattr(row, k)) for k in PREFERENCE_FIELDS}


def _wants(prefs: dict, kind: NotificationType, issue: Issue) -> bool:
    if not prefs[_PREF_FOR_TYPE[kind]]:
        return False
    if prefs["high_priority_only"] and issue.priority not in HIGH_PRIORITIES:
        return False
    return True


# ---------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------

class PendingNotifications:
    """Notifications staged in the current transaction, delivered after commit."""

    def __init__(self):
        self.items: list[tuple[Notification, bool]] = []

    def __len__(self):
        return len(self.items)

    def stage(self, db: Session, recipient_id: int, kind: NotificationType, issue: Issue,
              title: str, message: str, email: bool):
        n = Notification(
            recipient_id=recipient_id,
            type=kind,
            title=title,
            message=message,
            issue_id=issue.id,
            created_at=utcnow(),
        )
        db.add(n)
        self.items.append((n, email))
        return n

    def deliver(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        for n, email in self.items:
            db.refresh(n)
            payload = NotificationOut(**notification_dict(n)).model_dump(mode="json")
            hub.publish(n.recipient_id, payload)
            if email and background_tasks is not None:
                background_tasks.add_task(_send_notification_email_safe, n.id)
        self.items = []


def _stage_for(db: Session, pending: PendingNotifications, admin: AdminUser, kind: NotificationType,
               issue: Issue, title: str, message: str):
    prefs = get_preferences(db, admin.id)
    if _wants(prefs, kind, issue):
        pending.stage(db, admin.id, kind, issue, title, message, prefs["email_notifications"])


def notify_issue_submitted(db: Session, issue: Issue, pending: PendingNotifications):
    admins = db.query(AdminUser).filter(AdminUser.is_active.is_(True)).all()
    title = "New issue reported"
    message = f"{issue.title} ({issue.category.value}, {issue.priority.value} priority) at {issue.location_address}"
    for admin in admins:
        _stage_for(db, pending, admin, NotificationType.issue_submitted, issue, title, message)


def notify_status_change(db: Session, issue: Issue, actor_id: int, new_status: str, pending: PendingNotifications):
    if not issue.assigned_to or issue.assigned_to == actor_id:
        return
    assignee = db.get(AdminUser, issue.assigned_to)
    if not assignee or not assignee.is_active:
        return
    _stage_for(
        db, pending, assignee, NotificationType.status_update, issue,
        "Issue status updated",
        f"Issue #{issue.id} \"{issue.title}\" is now {new_status.replace('_', ' ')}",
    )


def notify_assignment(db: Session, issue: Issue, actor: AdminUser, assignee: Optional[AdminUser],
                      pending: PendingNotifications):
    if not assignee or assignee.id == actor.id:
        return
    _stage_for(
        db, pending, assignee, NotificationType.assignment, issue,
        "Issue assigned to you",
        f"Issue #{issue.id} \"{issue.title}\" was assigned to you by {actor.full_name}",
    )


def _send_notification_email_safe(notification_id: int):
    db = SessionLocal()
    try:
        n = db.get(Notification, notification_id)
        if not n:
            return
        recipient = db.get(AdminUser, n.recipient_id)
        if not recipient or not recipient.email:
            return
        if send_notification_email(recipient.email, n.title, n.message, n.issue_id):
            n.email_sent = True
            db.commit()
    except Exception as e:
        logger.error(f"Error in background notification email: {e}", exc_info=True)
    finally:
        db.close()


# ---------------------------------------------------------------
# Reads and read-flag writes
# ---------------------------------------------------------------

def list_notifications(db: Session, recipient_id: int, limit: Optional[int] = None) -> list[Notification]:
    q = (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    if limit:
        q = q.limit(limit)
    return q.all()


def mark_read(db: Session, recipient_id: int, notification_id: int) -> bool:
    updated = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.recipient_id == recipient_id)
        .update({"is_read": True}, synchronize_session=False)
    )
    db.commit()
    return updated > 0


def unread_count(db: Session, recipient_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
        .count()
    )


def mark_all_read(db: Session, recipient_id: int) -> int:
    if unread_count(db, recipient_id) == 0:
        return 0
    updated = (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
        .update({"is_read": True}, synchronize_session=False)
    )
    db.commit()
    return updated


class NotificationCenter:
    """The bell menu: recent notifications plus a local unread counter.

    Pushed inserts are prepended without re-reading the store, so the list can
    drift from the database until the next ``load``.
    """

    def __init__(self, recipient_id: int, limit: int = FEED_LIMIT):
        self.recipient_id = recipient_id
        self.limit = limit
        self.items: list[dict] = []
        self.unread_count = 0

    def load(self, db: Session):
        rows = list_notifications(db, self.recipient_id, self.limit)
        self.items = [NotificationOut(**notification_dict(n)).model_dump(mode="json") for n in rows]
        self.unread_count = sum(1 for n in self.items if not n["is_read"])

    def on_insert(self, payload: dict):
        self.items.insert(0, payload)
        if not payload.get("is_read"):
            self.unread_count += 1

    def mark_read(self, db: Session, notification_id: int) -> bool:
        if not mark_read(db, self.recipient_id, notification_id):
            return False
        for item in self.items:
            if item["id"] == notification_id and not item["is_read"]:
                item["is_read"] = True
                self.unread_count = max(0, self.unread_count - 1)
        return True

    def mark_all_read(self, db: Session) -> int:
        if self.unread_count == 0:
            return 0
        updated = mark_all_read(db, self.recipient_id)
        for item in self.items:
            item["is_read"] = True
        self.unread_count = 0
        return updated

    def snapshot(self) -> dict:
        return {"event": "snapshot", "notifications": self.items, "unread_count": self.unread_count}
