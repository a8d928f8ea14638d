"""
api/routes/v1/auth.py -- Registration, login, logout and current-user endpoints.

Routes:
  POST /api/v1/auth/register  -- create account; sets session cookie on success
  POST /api/v1/auth/login     -- password login; sets session cookie on success
  POST /api/v1/auth/logout    -- destroys session; always clears cookie; true/false
  GET  /api/v1/auth/me        -- current user or null

Field errors (short input, taken username, bad credentials) are normal
results, returned with HTTP 200 inside UserResponse.errors. Only store faults
and malformed requests produce error status codes, via the handlers in
api/main.py.

Handlers are plain def: argon2 and the SQLAlchemy calls block, so FastAPI
runs them in its threadpool.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response

from api.models import UserOut, UsernamePasswordInput, UserResponse
from auth import service
from auth.dependencies import (
    clear_session_cookie,
    get_session_handle,
    get_user_store,
    set_session_cookie,
)
from auth.sessions import SessionHandle
from auth.store import UserStore

# Auth policy: every route here is public. me() answers null for anonymous callers.
router = APIRouter()


def _issue_cookie(response: Response, session: SessionHandle) -> None:
    if session.issued and session.token:
        set_session_cookie(response, session.token)


@router.post("/auth/register", response_model=UserResponse)
def register(
    body: UsernamePasswordInput,
    response: Response,
    store: UserStore = Depends(get_user_store),
    session: SessionHandle = Depends(get_session_handle),
) -> UserResponse:
    """Create an account and log it in."""
    result = service.register(store, session, body.username, body.password)
    _issue_cookie(response, session)
    return UserResponse.from_result(result)


@router.post("/auth/login", response_model=UserResponse)
def login(
    body: UsernamePasswordInput,
    response: Response,
    store: UserStore = Depends(get_user_store),
    session: SessionHandle = Depends(get_session_handle),
) -> UserResponse:
    """Authenticate with username and password."""
    result = service.login(store, session, body.username, body.password)
    _issue_cookie(response, session)
    response.headers["Cache-Control"] = "no-store"
    return UserResponse.from_result(result)


@router.post("/auth/logout", response_model=bool)
def logout(
    response: Response,
    session: SessionHandle = Depends(get_session_handle),
) -> bool:
    """End the session. Returns false if the session store failed; never errors."""
    return service.logout(session, lambda: clear_session_cookie(response))


@router.get("/auth/me", response_model=Optional[UserOut])
def me(
    store: UserStore = Depends(get_user_store),
    session: SessionHandle = Depends(get_session_handle),
) -> Optional[UserOut]:
    """Return the logged-in user, or null."""
    user = service.me(store, session)
    return UserOut.from_user(user) if user is not None else None
