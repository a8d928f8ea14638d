"""
auth/models.py -- Domain dataclasses and result variants for authentication.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; stores and the service do the work.

Two small tagged unions live here:
  CreateOutcome = Created | DuplicateKey | Fault
      What UserStore.create_user() reports. The service matches on
      DuplicateKey only; Fault is raised as StoreFault.
  UserResult = Ok | Invalid
      What register() and login() return. A result carries either a user or
      a non-empty list of field errors, never both.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass
class User:
    """An identity record.

    password_hash is the argon2 encoded string (algorithm, parameters, salt and
    digest in one value). It never leaves the auth package: the API layer maps
    User to a response model that has no hash field.
    """

    username: str
    password_hash: str
    id: int | None = None
    created_at: str | None = None


@dataclass
class Session:
    """Server-side session state looked up by the opaque cookie token."""

    token: str
    data: dict = field(default_factory=dict)
    created_at: float | None = None
    expires_at: float | None = None


@dataclass(frozen=True)
class FieldError:
    """Attributes a failure to one input field."""

    field: str
    message: str


# ---------------------------------------------------------------------------
# Store outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Created:
    user: User


@dataclass(frozen=True)
class DuplicateKey:
    """The username UNIQUE constraint rejected the insert."""

    username: str


@dataclass(frozen=True)
class Fault:
    """Any other store failure. detail is for logs only."""

    detail: str


CreateOutcome = Union[Created, DuplicateKey, Fault]


# ---------------------------------------------------------------------------
# Service results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok:
    user: User


@dataclass(frozen=True)
class Invalid:
    errors: tuple[FieldError, ...]

    def __post_init__(self) -> None:
        if not self.errors:
            raise ValueError("Invalid requires at least one FieldError")


UserResult = Union[Ok, Invalid]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AuthError(Exception):
    """Base class for auth package failures that are not field errors."""


class StoreFault(AuthError):
    """The user store failed for a reason other than a duplicate username."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class SessionStoreError(AuthError):
    """The session store could not complete a read, write, or destroy."""
