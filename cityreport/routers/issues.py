# File: cityreport/routers/issues.py
import logging
from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from cityreport.core.security import AdminAuthorization, get_current_admin
from cityreport.db.session import get_db
from cityreport.models.issue import Issue
from cityreport.models.issue_update import IssueUpdate
from cityreport.models.user import AdminUser
from cityreport.routers.admin import active_admins
from cityreport.schemas.issue import (
    AssignmentIn,
    BulkActionIn,
    BulkActionOut,
    IssueDetailOut,
    IssueListOut,
    IssueOut,
    IssueUpdateIn,
)
from cityreport.services.bulk import Selection, UnknownIssuesError, apply_bulk_action
from cityreport.services.filters import LIST_PATH, IssueFilters
from cityreport.services.issue_updates import apply_assignment, apply_issue_update
from cityreport.services.notifications import (
    PendingNotifications,
    notify_assignment,
    notify_status_change,
)
from cityreport.services.presenters import admin_lite, issue_dict, update_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/issues", tags=["admin-issues"])


def _get_issue_or_404(db: Session, issue_id: int) -> Issue:
    issue = db.get(Issue, issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="Issue not found")
    return issue


def _filter_options(db: Session) -> tuple[list[str], list[dict]]:
    rows = (
        db.query(Issue.assigned_department)
        .filter(Issue.assigned_department.isnot(None))
        .distinct()
        .order_by(Issue.assigned_department)
        .all()
    )
    departments = [r[0] for r in rows]
    admins = [admin_lite(a) for a in active_admins(db)]
    return departments, admins


@router.get("", response_model=IssueListOut)
def list_issues(
    request: Request,
    db: Session = Depends(get_db),
    auth: AdminAuthorization = Depends(get_current_admin),
):
    filters = IssueFilters.from_params(request.query_params)
    result = {
        "items": [],
        "total": 0,
        "filters": filters.as_dict(),
        "active_filter_count": filters.active_count,
        "chips": filters.chips(),
        "location": filters.location(),
    }
    try:
        issues = (
            filters.apply(db.query(Issue))
            .order_by(Issue.created_at.desc(), Issue.id.desc())
            .all()
        )
        departments, admins = _filter_options(db)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching issues: {e}", exc_info=True)
        result["error"] = "Failed to load issues"
        return result

    result.update({
        "items": [IssueOut(**issue_dict(i)) for i in issues],
        "total": len(issues),
        "departments": departments,
        "admin_users": admins,
    })
    return result


@router.post("/filters")
def apply_filters(
    payload: dict = Body(default={}),
    auth: AdminAuthorization = Depends(get_current_admin),
):
    filters = IssueFilters.from_params({k: str(v) for k, v in payload.items() if v is not None})
    return RedirectResponse(url=filters.location(), status_code=303)


@router.post("/filters/clear")
def clear_filters(auth: AdminAuthorization = Depends(get_current_admin)):
    return RedirectResponse(url=LIST_PATH, status_code=303)


@router.post("/bulk", response_model=BulkActionOut)
def bulk_action(
    body: BulkActionIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth: AdminAuthorization = Depends(get_current_admin),
):
    selection = Selection(body.issue_ids)
    pending = PendingNotifications()
    try:
        result = apply_bulk_action(db, selection, body.action, auth.admin)
        if body.action in ("mark_in_progress", "mark_resolved"):
            new_status = "in_progress" if body.action == "mark_in_progress" else "resolved"
            for issue in result.issues:
                notify_status_change(db, issue, auth.id, new_status, pending)
        db.commit()
    except UnknownIssuesError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail="Some issue IDs not found") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Bulk action failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Bulk action failed")

    logger.info("admin %s applied %s to %d issues", auth.id, body.action, len(selection))
    pending.deliver(db, background_tasks)
    selection.clear()
    return {"action": body.action, "updated": len(result.issues), "audit_records": len(result.records)}


@router.get("/{issue_id}", response_model=IssueDetailOut)
def get_issue(
    issue_id: int,
    db: Session = Depends(get_db),
    auth: AdminAuthorization = Depends(get_current_admin),
):
    issue = _get_issue_or_404(db, issue_id)
    updates = (
        db.query(IssueUpdate)
        .filter(IssueUpdate.issue_id == issue_id)
        .order_by(IssueUpdate.created_at.desc(), IssueUpdate.id.desc())
        .all()
    )
    return {"issue": issue_dict(issue), "updates": [update_dict(u) for u in updates]}


@router.patch("/{issue_id}", response_model=IssueOut)
def update_issue(
    issue_id: int,
    body: IssueUpdateIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth: AdminAuthorization = Depends(get_current_admin),
):
    issue = _get_issue_or_404(db, issue_id)
    old_status = issue.status.value
    pending = PendingNotifications()
    try:
        records = apply_issue_update(
            db, issue, auth.id,
            status=body.status,
            priority=body.priority,
            comment=body.comment,
        )
        if not records:
            raise HTTPException(status_code=400, detail="No changes to save")
        if issue.status.value != old_status:
            notify_status_change(db, issue, auth.id, issue.status.value, pending)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update issue {issue_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update issue")

    db.refresh(issue)
    pending.deliver(db, background_tasks)
    return IssueOut(**issue_dict(issue))


@router.put("/{issue_id}/assignment", response_model=IssueOut)
def update_assignment(
    issue_id: int,
    body: AssignmentIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth: AdminAuthorization = Depends(get_current_admin),
):
    issue = _get_issue_or_404(db, issue_id)
    assignee = None
    if body.assigned_to is not None:
        assignee = db.get(AdminUser, body.assigned_to)
        if not assignee or not assignee.is_active:
            raise HTTPException(status_code=400, detail="Assignee must be an active admin")

    pending = PendingNotifications()
    try:
        record = apply_assignment(db, issue, auth.id, assignee)
        if record is not None:
            notify_assignment(db, issue, auth.admin, assignee, pending)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Assignment failed for issue {issue_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update assignment")

    db.refresh(issue)
    pending.deliver(db, background_tasks)
    return IssueOut(**issue_dict(issue))
