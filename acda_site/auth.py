"""
Admin login, logout and session status.
POST /api/auth/login checks username/password (bcrypt) and sets the session cookie.
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from acda_site import config
from acda_site.database import get_db
from acda_site.errors import RateLimited, Unauthorized, ValidationFailed
from acda_site.models import Admin
from acda_site.rate_limit import get_client_ip, login_limiter
from acda_site.schemas import LoginRequest
from acda_site.seed import normalize_username, verify_password
from acda_site.session import (
    Principal,
    clear_session_cookie,
    create_session_token,
    current_principal,
    set_session_cookie,
)

logger = logging.getLogger(__name__)
router = APIRouter()

_LOGIN_WINDOW_SECONDS = 60


@router.post("/api/auth/login")
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    client_ip = get_client_ip(request)
    if not login_limiter.check_and_record(
        client_ip, window_seconds=_LOGIN_WINDOW_SECONDS, max_count=config.RATE_LIMIT_LOGIN_PER_MINUTE
    ):
        raise RateLimited(
            "Too many login attempts. Please try again later.",
            retry_after=login_limiter.retry_after(client_ip, window_seconds=_LOGIN_WINDOW_SECONDS),
        )

    username, password = body.username, body.password
    if not username.strip() or not password:
        raise ValidationFailed("Please provide both username and password")

    admin = db.query(Admin).filter(Admin.username == normalize_username(username)).first()
    if admin is None or not verify_password(password, admin.password_hash):
        logger.info("Failed login for %s from %s", normalize_username(username), client_ip)
        raise Unauthorized("Invalid username or password")

    principal = Principal(id=admin.id, name=admin.username)
    set_session_cookie(response, create_session_token(principal))
    logger.info("Admin authenticated: %s", admin.username)
    return {"success": True, "user": {"id": principal.id, "name": principal.name}}


@router.post("/api/auth/logout")
def logout(response: Response):
    clear_session_cookie(response)
    return {"success": True}


@router.get("/api/auth/session")
def session_status(request: Request):
    principal = current_principal(request)
    if principal is None:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": {"id": principal.id, "name": principal.name}}
