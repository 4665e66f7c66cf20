# File: cityreport/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from cityreport.core.config import cors_origins_list, settings
from cityreport.core.ratelimit import limiter
from cityreport.core.security import AdminAuthError, LOGIN_URL
from cityreport.routers import admin, auth, issues, notifications, public

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="City Issue Reporter API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AdminAuthError)
async def admin_auth_error_handler(request: Request, exc: AdminAuthError):
    # page navigations go to the login screen; API callers get a 401
    if "text/html" in request.headers.get("accept", ""):
        return RedirectResponse(url=LOGIN_URL, status_code=303)
    return JSONResponse(
        status_code=401,
        content={"detail": exc.detail, "reason": exc.reason, "login_url": LOGIN_URL},
    )


@app.get("/health")
def health():
    return {"ok": True}

app.include_router(public.router)
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(issues.router)
app.include_router(notifications.router)
