"""
Admin sessions and the session gate for mutating endpoints.
A session is an HS256 JWT in an HttpOnly cookie, issued at login. Nothing is stored server-side.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Request, Response

from acda_site.config import (
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_SECURE,
    SESSION_MAX_AGE,
    SESSION_SECRET,
)
from acda_site.errors import Unauthorized

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
_ISSUER = "acda-site"


@dataclass(frozen=True)
class Principal:
    id: int
    name: str


def _secret() -> str:
    if not SESSION_SECRET:
        raise RuntimeError("ACDA_SESSION_SECRET is not set")
    return SESSION_SECRET


def create_session_token(principal: Principal, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "iss": _ISSUER,
        "sub": str(principal.id),
        "name": principal.name,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=SESSION_MAX_AGE)).timestamp()),
    }
    token = jwt.encode(payload, _secret(), algorithm=_ALGORITHM)
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def decode_session_token(token: str | None) -> Principal | None:
    """Principal for a valid, unexpired token; None otherwise."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, _secret(), algorithms=[_ALGORITHM], issuer=_ISSUER)
        return Principal(id=int(payload["sub"]), name=str(payload.get("name") or "Admin"))
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as e:
        logger.debug("Session token rejected: %s", e)
        return None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, secure=SESSION_COOKIE_SECURE, samesite="lax")


def current_principal(request: Request) -> Principal | None:
    return decode_session_token(request.cookies.get(SESSION_COOKIE_NAME))


def authorize(request: Request) -> Principal:
    """Session gate. Raises Unauthorized (401) when no valid session is present."""
    principal = current_principal(request)
    if principal is None:
        raise Unauthorized()
    return principal


# Convenience dependency for mutating routes
RequireAdmin = Depends(authorize)
