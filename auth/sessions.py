"""
auth/sessions.py -- Server-side session store and the request-scoped handle.

Pattern: Repository (SessionStore) + per-request capability (SessionHandle).

SessionStore persists one row per session:
  token_hash  HMAC-SHA256(SECRET_KEY, token), primary key
  data        JSON object ({"user_id": 7})
  created_at  epoch seconds
  expires_at  epoch seconds

The raw token only ever exists in the client's cookie and in memory for the
duration of a request. Storing the HMAC means a copy of the sessions table
cannot be replayed as cookies without also knowing SECRET_KEY. HMAC (not
argon2) is the right tool here: tokens carry 256 bits of entropy, so lookup
can be a deterministic O(1) primary-key hit.

Expiry is owned here, not by the auth service: get() ignores and deletes
expired rows, and purge_expired() is run periodically by the API lifespan.

SessionHandle wraps one request's view of a session. Service functions take
a handle instead of touching cookies or the store directly; the route layer
builds the handle from the incoming cookie and writes the outgoing cookie
when handle.issued is True.

Binding a new value (a login or a registration) always moves the session to
a new token and deletes the old row. A token an attacker planted in the
victim's browser therefore stops working at the moment the victim logs in.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import secrets
import time
from typing import Any

from sqlalchemy import Column, Float, MetaData, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.models import Session, SessionStoreError
from auth.store import make_engine

logger = logging.getLogger("sessionauth.auth.sessions")

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("token_hash", String(64), primary_key=True),
    Column("data", Text, nullable=False),
    Column("created_at", Float, nullable=False),
    Column("expires_at", Float, nullable=False, index=True),
)


class SessionStore:
    """Repository for Session rows.

    Every method wraps SQLAlchemyError in SessionStoreError so callers deal
    with one exception type regardless of the backing database.
    """

    def __init__(self, db_url: str, secret_key: str, ttl_seconds: int) -> None:
        self.engine: Engine = make_engine(db_url)
        self.ttl_seconds = ttl_seconds
        self._secret = secret_key.encode("utf-8")
        _metadata.create_all(self.engine)

    def _key(self, token: str) -> str:
        return hmac.new(self._secret, token.encode("utf-8"), hashlib.sha256).hexdigest()

    def create(self, data: dict) -> str:
        """Persist a new session and return its raw token."""
        token = secrets.token_urlsafe(32)
        now = time.time()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _sessions.insert().values(
                        token_hash=self._key(token),
                        data=json.dumps(data),
                        created_at=now,
                        expires_at=now + self.ttl_seconds,
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not create session") from exc
        return token

    def get(self, token: str) -> Session | None:
        """Return the live session for token, or None if unknown or expired."""
        key = self._key(token)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_sessions.select().where(_sessions.c.token_hash == key)).fetchone()
                if row is None:
                    return None
                if row.expires_at <= time.time():
                    conn.execute(_sessions.delete().where(_sessions.c.token_hash == key))
                    conn.commit()
                    return None
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not read session") from exc
        return Session(
            token=token,
            data=json.loads(row.data),
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    def destroy(self, token: str) -> None:
        """Delete a session. Deleting an unknown token is not an error."""
        try:
            with self.engine.connect() as conn:
                conn.execute(_sessions.delete().where(_sessions.c.token_hash == self._key(token)))
                conn.commit()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not destroy session") from exc

    def purge_expired(self) -> int:
        """Delete all expired sessions. Returns number of rows removed."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= time.time()))
                conn.commit()
        except SQLAlchemyError as exc:
            raise SessionStoreError("could not purge sessions") from exc
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


class SessionHandle:
    """One request's view of its session.

    token is the cookie value the request arrived with, if any. The store is
    not consulted until the session is first read or written, so building a
    handle never fails. An unknown or expired token reads as an empty session
    and the next set() issues a fresh token.

    After set() binds a new value, issued is True and token holds the new
    value; the transport must then write it to the client.
    """

    def __init__(self, store: SessionStore, token: str | None = None) -> None:
        self._store = store
        self._cookie_token = token
        self._session: Session | None = None
        self._loaded = False
        self.issued = False

    def _load(self) -> Session | None:
        if not self._loaded:
            self._loaded = True
            if self._cookie_token:
                self._session = self._store.get(self._cookie_token)
        return self._session

    @property
    def token(self) -> str | None:
        session = self._load()
        return session.token if session is not None else None

    def get(self, key: str, default: Any = None) -> Any:
        session = self._load()
        if session is None:
            return default
        return session.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store key=value under a freshly issued token.

        A new row replaces the current one whenever the value changes, so a
        token planted before login is never the one bound to the user. The
        old row is deleted once the new one exists. Setting a value the
        session already holds leaves the token alone.
        """
        session = self._load()
        if session is not None and key in session.data and session.data[key] == value:
            return
        data = {**session.data, key: value} if session is not None else {key: value}
        token = self._store.create(data)
        previous = session.token if session is not None else None
        self._session = Session(token=token, data=data)
        self.issued = True
        if previous:
            logger.debug("Rotated session token on %r change", key)
            self._store.destroy(previous)

    def destroy(self) -> None:
        """Remove the session from the store.

        Local state is cleared even if the store raises, because the caller
        clears the cookie either way. The SessionStoreError still propagates.
        """
        if self._session is not None:
            token = self._session.token
        elif not self._loaded:
            token = self._cookie_token
        else:
            token = None
        self._session = None
        self._loaded = True
        self.issued = False
        if token:
            self._store.destroy(token)
