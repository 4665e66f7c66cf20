# cityreport/routers/auth.py

import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from cityreport.core.security import (
    ACCESS_TTL,
    COOKIE_NAME,
    LOGIN_URL,
    make_token,
    verify_password,
)
from cityreport.db.base import utcnow
from cityreport.db.session import get_db
from cityreport.models.user import AdminUser, User
from cityreport.schemas.auth import LoginIn, TokenOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["auth"])


@router.get("/login")
def login_page():
    return {"login_url": LOGIN_URL, "fields": ["email", "password"]}


@router.post("/login", response_model=TokenOut)
def login(body: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid login credentials")

    admin = db.get(AdminUser, user.id)
    if not admin:
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    if not admin.is_active:
        raise HTTPException(
            status_code=403,
            detail="Your account has been deactivated. Please contact your administrator.",
        )

    user.last_login = utcnow()
    db.commit()
    logger.info("admin %s signed in", admin.id)

    token = make_token(admin.id, admin.role.value)
    response.set_cookie(COOKIE_NAME, token, max_age=ACCESS_TTL, httponly=True, samesite="lax")
    return {"access_token": token, "token_type": "bearer", "expires_in": ACCESS_TTL}


@router.api_route("/logout", methods=["GET", "POST"])
def logout():
    response = RedirectResponse(url=LOGIN_URL, status_code=303)
    response.delete_cookie(COOKIE_NAME)
    return response
