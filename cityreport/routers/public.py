# cityreport/routers/public.py
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from cityreport.core.config import settings
from cityreport.core.ratelimit import limiter
from cityreport.db.session import get_db, SessionLocal
from cityreport.models.issue import Issue, IssueCategory, IssuePriority
from cityreport.schemas.issue import IssuePublicOut, ReportIn, ReportOut
from cityreport.services import analytics
from cityreport.services.notifications import PendingNotifications, notify_issue_submitted
from cityreport.services.notify_email import send_report_confirmation
from cityreport.services.presenters import public_issue_dict
from cityreport.services.routing import department_for_category

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])

HOME_RECENT = 6


def _send_report_confirmation_safe(issue_id: int, citizen_email: str):
    db = SessionLocal()
    try:
        issue = db.get(Issue, issue_id)
        if issue and citizen_email:
            send_report_confirmation(citizen_email, issue.id, issue.title, issue.assigned_department)
    except Exception as e:
        logger.error(f"Error in background report confirmation: {e}", exc_info=True)
    finally:
        db.close()


@router.get("/")
def home(db: Session = Depends(get_db)):
    try:
        recent = analytics.recent_issues(db, HOME_RECENT)
        counts = analytics.status_counts(db)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching issues: {e}", exc_info=True)
        return {"recent_issues": [], "status_counts": {}, "error": "Failed to load recent issues"}
    return {
        "recent_issues": [IssuePublicOut(**public_issue_dict(i)) for i in recent],
        "status_counts": counts,
    }


@router.post("/report", response_model=ReportOut, status_code=201)
@limiter.limit(settings.report_rate_limit)
def submit_report(
    request: Request,
    body: ReportIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    issue = Issue(
        title=body.title.strip(),
        description=body.description.strip(),
        category=IssueCategory(body.category),
        priority=IssuePriority(body.priority),
        location_address=body.location_address.strip(),
        assigned_department=department_for_category(body.category),
        citizen_name=body.citizen_name,
        citizen_email=body.citizen_email,
        citizen_phone=body.citizen_phone,
    )
    pending = PendingNotifications()
    try:
        db.add(issue)
        db.flush()
        notify_issue_submitted(db, issue, pending)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to submit report: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to submit report. Please try again.")
    db.refresh(issue)
    logger.info("issue %s submitted (%s -> %s)", issue.id, body.category, issue.assigned_department)

    pending.deliver(db, background_tasks)
    if issue.citizen_email:
        background_tasks.add_task(_send_report_confirmation_safe, issue.id, issue.citizen_email)

    return ReportOut(**public_issue_dict(issue), track_url=f"/track?id={issue.id}")


@router.get("/track", response_model=IssuePublicOut)
def track(id: str = Query(...), db: Session = Depends(get_db)):
    try:
        issue_id = int(id.strip())
    except ValueError:
        raise HTTPException(status_code=404, detail="No report found with that ID.")
    issue = db.get(Issue, issue_id)
    if not issue:
        raise HTTPException(status_code=404, detail="No report found with that ID.")
    return IssuePublicOut(**public_issue_dict(issue))
