# cityreport/core/security.py
from dataclasses import dataclass
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import time, jwt
from sqlalchemy.orm import Session
from cityreport.core.config import settings
from passlib.hash import bcrypt_sha256
from cityreport.db.session import get_db
from cityreport.models.user import AdminUser

ALGO = "HS256"
ACCESS_TTL = 8 * 3600
COOKIE_NAME = "access_token"
LOGIN_URL = "/admin/login"
bearer = HTTPBearer(auto_error=False)


class AdminAuthError(Exception):
    """Raised when a request has no session or the session is not an active admin.

    Handled in main.py: browsers are redirected to the login page, API callers
    get a 401 carrying the login URL.
    """

    def __init__(self, reason: str, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


@dataclass(frozen=True)
class AdminAuthorization:
    """Outcome of the once-per-request admin check."""
    admin: AdminUser

    @property
    def id(self) -> int:
        return self.admin.id

    @property
    def role(self) -> str:
        return self.admin.role.value


def hash_password(raw: str) -> str:
    return bcrypt_sha256.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    return bcrypt_sha256.verify(raw, hashed)

def make_token(user_id: int, role: str, ttl: int = ACCESS_TTL) -> str:
    now = int(time.time())
    payload = {"sub": str(user_id), "role": role, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGO)

def decode_token(token: Optional[str]) -> dict:
    if not token:
        raise AdminAuthError("not_authenticated", "Not authenticated")
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise AdminAuthError("token_expired", "Token expired")
    except jwt.InvalidTokenError:
        raise AdminAuthError("invalid_token", "Invalid token")

def authorize_token(token: Optional[str], db: Session) -> AdminAuthorization:
    payload = decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AdminAuthError("invalid_token", "Invalid token payload")
    admin = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if not admin:
        raise AdminAuthError("not_admin", "Access denied. Admin privileges required.")
    if not admin.is_active:
        raise AdminAuthError("inactive", "Your account has been deactivated. Please contact your administrator.")
    return AdminAuthorization(admin=admin)

def get_current_admin(request: Request,
                      creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                      db: Session = Depends(get_db)) -> AdminAuthorization:
    token = creds.credentials if creds else request.cookies.get(COOKIE_NAME)
    return authorize_token(token, db)
