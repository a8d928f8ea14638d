"""
auth/dependencies.py -- FastAPI Depends() helpers and session cookie transport.

get_session_handle() turns the incoming session cookie into a SessionHandle.
get_user_store() hands routes the process-wide UserStore from app.state.

set_session_cookie() / clear_session_cookie() are the only places the cookie
is written. Routes call set_session_cookie() when handle.issued is True and
clear_session_cookie() from logout.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request/Response)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request, Response

from auth.sessions import SessionHandle, SessionStore
from auth.store import UserStore
from core.config import get_settings

_settings = get_settings()


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_session_handle(request: Request) -> SessionHandle:
    """Build the request's SessionHandle from the session cookie, if present."""
    session_store: SessionStore = request.app.state.session_store
    token = request.cookies.get(_settings.cookie_name) or None
    return SessionHandle(session_store, token)


def set_session_cookie(response: Response, token: str) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the server-side session TTL so both expire together.
    """
    response.set_cookie(
        _settings.cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_ttl_seconds,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        _settings.cookie_name,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )
