"""
auth/service.py -- Registration, login, logout and current-user lookup.

This is the credential-validation and session-lifecycle protocol. It knows
nothing about HTTP: every function takes its collaborators explicitly
(a UserStore and the request's SessionHandle) and returns plain results.

  register(store, session, username, password) -> Ok | Invalid
  login(store, session, username, password)    -> Ok | Invalid
  logout(session, clear_cookie)                -> bool
  me(store, session)                           -> User | None

Checks short-circuit in order and return at most one FieldError. The messages
are part of the public contract; clients match on them.

Login reports unknown usernames and wrong passwords separately. That reveals
which usernames exist; it is an accepted property of this API.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import Callable

from auth.models import (
    Created,
    DuplicateKey,
    FieldError,
    Invalid,
    Ok,
    SessionStoreError,
    StoreFault,
    User,
    UserResult,
)
from auth.passwords import hash_password, needs_rehash, verify_password
from auth.sessions import SessionHandle
from auth.store import UserStore

logger = logging.getLogger("sessionauth.auth")

USER_ID_KEY = "user_id"

USERNAME_TOO_SHORT = FieldError("username", "username length must be greater than 2")
PASSWORD_TOO_SHORT = FieldError("password", "password length must be greater than 3")
USERNAME_TAKEN = FieldError("username", "username is already taken")
USERNAME_UNKNOWN = FieldError("username", "Username doesn't exist.")
PASSWORD_INCORRECT = FieldError("password", "Incorrect password.")


def _invalid(error: FieldError) -> Invalid:
    return Invalid(errors=(error,))


def validate_registration(username: str, password: str) -> FieldError | None:
    """Return the first rule the input breaks, or None.

    Lengths count Unicode code points, so an emoji outside the BMP is one
    character here (a UTF-16 count would make it two).
    """
    if len(username) <= 2:
        return USERNAME_TOO_SHORT
    if len(password) <= 3:
        return PASSWORD_TOO_SHORT
    return None


def create_account(store: UserStore, username: str, password: str) -> UserResult:
    """Validate, hash and insert. Shared by register() and the admin CLI.

    Nothing is written when validation fails. A duplicate username comes back
    as a field error; any other store failure raises StoreFault.
    """
    error = validate_registration(username, password)
    if error is not None:
        return _invalid(error)

    outcome = store.create_user(username, hash_password(password))
    if isinstance(outcome, DuplicateKey):
        logger.info("Registration rejected: username %r already taken", username)
        return _invalid(USERNAME_TAKEN)
    if not isinstance(outcome, Created):
        raise StoreFault(outcome.detail)

    logger.info("Registered user %d (%s)", outcome.user.id, outcome.user.username)
    return Ok(user=outcome.user)


def register(store: UserStore, session: SessionHandle, username: str, password: str) -> UserResult:
    """Create a user and bind the session to it.

    The insert and the session bind are not atomic. If the session store
    fails after the insert, SessionStoreError propagates and the account
    stays; a retry then reports the username as taken and the user logs in
    instead.
    """
    result = create_account(store, username, password)
    if isinstance(result, Ok):
        session.set(USER_ID_KEY, result.user.id)
    return result


def login(store: UserStore, session: SessionHandle, username: str, password: str) -> UserResult:
    """Verify credentials and bind the session to the user.

    The session is only touched on success.
    """
    user = store.get_by_username(username)
    if user is None:
        return _invalid(USERNAME_UNKNOWN)
    if not verify_password(password, user.password_hash):
        logger.debug("Login rejected for user %d: incorrect password", user.id)
        return _invalid(PASSWORD_INCORRECT)

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        store.update_password_hash(user.id, user.password_hash)
        logger.info("Upgraded password hash parameters for user %d", user.id)

    session.set(USER_ID_KEY, user.id)
    logger.debug("User %d logged in", user.id)
    return Ok(user=user)


def logout(session: SessionHandle, clear_cookie: Callable[[], None]) -> bool:
    """Destroy the session and clear the client's cookie.

    clear_cookie runs whether or not destruction succeeded. A store failure
    is logged and reported as False; it never raises.
    """
    try:
        session.destroy()
    except SessionStoreError:
        logger.exception("Failed to destroy session")
        return False
    finally:
        clear_cookie()
    return True


def me(store: UserStore, session: SessionHandle) -> User | None:
    """Return the user bound to the session, or None.

    A session pointing at a user that no longer exists also yields None.
    """
    user_id = session.get(USER_ID_KEY)
    if user_id is None:
        return None
    return store.get_by_id(user_id)
