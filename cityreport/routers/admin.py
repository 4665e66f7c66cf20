# cityreport/routers/admin.py
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from cityreport.core.security import AdminAuthorization, get_current_admin
from cityreport.db.session import get_db
from cityreport.models.department import Department
from cityreport.models.user import AdminUser
from cityreport.schemas.issue import IssueOut
from cityreport.schemas.user import AdminUserOut
from cityreport.services import analytics
from cityreport.services.presenters import issue_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def active_admins(db: Session) -> list[AdminUser]:
    return (
        db.query(AdminUser)
        .filter(AdminUser.is_active.is_(True))
        .order_by(AdminUser.full_name)
        .all()
    )


@router.get("")
def dashboard(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        stats = analytics.dashboard(db)
    except SQLAlchemyError as e:
        logger.error(f"Error loading dashboard stats: {e}", exc_info=True)
        return {
            "admin": {"id": auth.id, "full_name": auth.admin.full_name, "role": auth.role},
            "total_issues": 0,
            "status_counts": {},
            "category_counts": {},
            "recent_issues": [],
            "error": "Failed to load dashboard",
        }
    stats["recent_issues"] = [IssueOut(**issue_dict(i)) for i in stats["recent_issues"]]
    stats["admin"] = {"id": auth.id, "full_name": auth.admin.full_name, "role": auth.role}
    return stats


@router.get("/reports")
def reports(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        return analytics.reports(db)
    except SQLAlchemyError as e:
        logger.error(f"Error loading reports: {e}", exc_info=True)
        return {
            "monthly_stats": {},
            "avg_resolution_days": 0,
            "department_stats": {},
            "total_issues": 0,
            "resolved_issues": 0,
            "error": "Failed to load reports",
        }


@router.get("/departments")
def departments(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        rows = db.query(Department).order_by(Department.name.asc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching departments: {e}", exc_info=True)
        return []
    return [
        {
            "id": d.id,
            "name": d.name,
            "description": d.description,
            "contact_email": d.contact_email,
            "contact_phone": d.contact_phone,
        }
        for d in rows
    ]


@router.get("/users/active", response_model=list[AdminUserOut])
def list_active_admins(db: Session = Depends(get_db), auth: AdminAuthorization = Depends(get_current_admin)):
    try:
        admins = active_admins(db)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching admin users: {e}", exc_info=True)
        return []
    return [
        {
            "id": a.id,
            "full_name": a.full_name,
            "email": a.email,
            "role": a.role.value,
            "is_active": a.is_active,
            "department": a.department.name if a.department else None,
        }
        for a in admins
    ]
