# cityreport/services/filters.py
"""Advanced filter state for the admin issue list.

The state round-trips through the page URL: ``to_params`` drops every field
left at its default, ``from_params`` rebuilds the same state from them.
"""
from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Mapping
from urllib.parse import urlencode
from sqlalchemy import or_
from cityreport.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus

ALL = "all"
UNASSIGNED = "unassigned"
LIST_PATH = "/admin/issues"

# attribute -> query parameter name used in the page URL
PARAM_NAMES = {
    "search": "search",
    "status": "status",
    "category": "category",
    "priority": "priority",
    "department": "department",
    "assigned_to": "assignedTo",
    "date_from": "dateFrom",
    "date_to": "dateTo",
}

_ENUM_FIELDS = {
    "status": {s.value for s in IssueStatus},
    "category": {c.value for c in IssueCategory},
    "priority": {p.value for p in IssuePriority},
}


def _parse_date(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class IssueFilters:
    search: str = ""
    status: str = ALL
    category: str = ALL
    priority: str = ALL
    department: str = ALL
    assigned_to: str = ALL
    date_from: str = ""
    date_to: str = ""

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "IssueFilters":
        """Build state from URL parameters; unusable values fall back to the default."""
        values = {}
        for f in fields(cls):
            raw = (params.get(PARAM_NAMES[f.name]) or "").strip()
            if not raw or raw == ALL:
                continue
            if f.name in _ENUM_FIELDS and raw not in _ENUM_FIELDS[f.name]:
                continue
            if f.name == "assigned_to" and raw != UNASSIGNED and not (raw.isascii() and raw.isdigit()):
                continue
            if f.name in ("date_from", "date_to") and _parse_date(raw) is None:
                continue
            values[f.name] = raw
        return cls(**values)

    def is_default(self, name: str) -> bool:
        value = getattr(self, name)
        return value == "" or value == ALL

    def to_params(self) -> dict[str, str]:
        return {
            PARAM_NAMES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if not self.is_default(f.name)
        }

    def as_dict(self) -> dict[str, str]:
        return {PARAM_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}

    @property
    def active_count(self) -> int:
        return len(self.to_params())

    def location(self, path: str = LIST_PATH) -> str:
        params = self.to_params()
        return f"{path}?{urlencode(params)}" if params else path

    def without(self, param: str) -> "IssueFilters":
        for attr, name in PARAM_NAMES.items():
            if name == param:
                default = next(f.default for f in fields(self) if f.name == attr)
                return replace(self, **{attr: default})
        raise KeyError(param)

    def chips(self, path: str = LIST_PATH) -> list[dict]:
        return [
            {"key": key, "value": value, "remove_url": self.without(key).location(path)}
            for key, value in self.to_params().items()
        ]

    def apply(self, q):
        """Narrow an ``Issue`` query to this state."""
        if not self.is_default("status"):
            q = q.filter(Issue.status == IssueStatus(self.status))
        if not self.is_default("category"):
            q = q.filter(Issue.category == IssueCategory(self.category))
        if not self.is_default("priority"):
            q = q.filter(Issue.priority == IssuePriority(self.priority))
        if not self.is_default("department"):
            q = q.filter(Issue.assigned_department == self.department)
        if not self.is_default("assigned_to"):
            if self.assigned_to == UNASSIGNED:
                q = q.filter(Issue.assigned_to.is_(None))
            else:
                q = q.filter(Issue.assigned_to == int(self.assigned_to))
        if self.search:
            pattern = _like_pattern(self.search)
            q = q.filter(or_(
                Issue.title.ilike(pattern, escape="\\"),
                Issue.description.ilike(pattern, escape="\\"),
            ))
        if self.date_from:
            start = datetime.combine(_parse_date(self.date_from), time.min, tzinfo=timezone.utc)
            q = q.filter(Issue.created_at >= start)
        if self.date_to:
            # the whole end day is included
            end = datetime.combine(_parse_date(self.date_to) + timedelta(days=1), time.min, tzinfo=timezone.utc)
            q = q.filter(Issue.created_at < end)
        return q
