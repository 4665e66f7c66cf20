# cityreport/services/analytics.py
import calendar
import math
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from cityreport.db.base import utcnow
from cityreport.models.issue import Issue, IssueStatus

REPORT_MONTHS = 6


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def months_ago(now: datetime, months: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    # clamp the day for shorter months
    day = min(now.day, calendar.monthrange(year, month + 1)[1])
    return now.replace(year=year, month=month + 1, day=day)


def status_counts(db: Session) -> dict[str, int]:
    rows = db.query(Issue.status, func.count(Issue.id)).group_by(Issue.status).all()
    return {s.value if hasattr(s, "value") else str(s): n for s, n in rows}


def category_counts(db: Session) -> dict[str, int]:
    rows = db.query(Issue.category, func.count(Issue.id)).group_by(Issue.category).all()
    return {c.value if hasattr(c, "value") else str(c): n for c, n in rows}


def recent_issues(db: Session, limit: int) -> list[Issue]:
    return db.query(Issue).order_by(Issue.created_at.desc(), Issue.id.desc()).limit(limit).all()


def dashboard(db: Session) -> dict:
    return {
        "total_issues": db.query(func.count(Issue.id)).scalar() or 0,
        "status_counts": status_counts(db),
        "category_counts": category_counts(db),
        "recent_issues": recent_issues(db, 10),
    }


def reports(db: Session, now: Optional[datetime] = None) -> dict:
    """Six-month trend, mean days-to-resolve and per-department load."""
    now = now or utcnow()
    since = months_ago(now, REPORT_MONTHS)

    monthly: dict[str, dict[str, int]] = {}
    window = (
        db.query(Issue.created_at, Issue.status)
        .filter(Issue.created_at >= since)
        .order_by(Issue.created_at)
        .all()
    )
    for created_at, status in window:
        key = _as_utc(created_at).strftime("%Y-%m")
        bucket = monthly.setdefault(key, {"total": 0, "resolved": 0})
        bucket["total"] += 1
        if status == IssueStatus.resolved:
            bucket["resolved"] += 1

    resolved = (
        db.query(Issue.created_at, Issue.resolved_at)
        .filter(Issue.resolved_at.isnot(None))
        .all()
    )
    days = [
        math.ceil((_as_utc(r) - _as_utc(c)).total_seconds() / 86400)
        for c, r in resolved
    ]
    # halves round up
    avg_resolution_days = math.floor(sum(days) / len(days) + 0.5) if days else 0

    departments: dict[str, int] = {}
    for dept, n in db.query(Issue.assigned_department, func.count(Issue.id)).group_by(Issue.assigned_department).all():
        name = dept or "Unassigned"
        departments[name] = departments.get(name, 0) + n

    return {
        "monthly_stats": monthly,
        "avg_resolution_days": avg_resolution_days,
        "department_stats": dict(sorted(departments.items(), key=lambda x: x[1], reverse=True)),
        "total_issues": len(window),
        "resolved_issues": len(resolved),
    }
