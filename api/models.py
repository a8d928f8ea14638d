"""
API request and response models for SessionAuth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

UserOut has no password_hash field, so a hash cannot leak through a response
even by accident.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import Invalid, Ok, User, UserResult

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class UsernamePasswordInput(BaseModel):
    """Request body for POST /auth/register and POST /auth/login.

    Length rules are enforced by the auth service, not here, so that short
    values come back as field errors rather than 422s.
    """

    username: str
    password: str


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(id=user.id, username=user.username, created_at=user.created_at or "")


class FieldErrorOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class UserResponse(BaseModel):
    """Envelope for register/login: exactly one of errors or user is set."""

    model_config = ConfigDict(frozen=True)

    errors: Optional[list[FieldErrorOut]] = None
    user: Optional[UserOut] = None

    @classmethod
    def from_result(cls, result: UserResult) -> "UserResponse":
        if isinstance(result, Ok):
            return cls(user=UserOut.from_user(result.user))
        if isinstance(result, Invalid):
            return cls(errors=[FieldErrorOut(field=e.field, message=e.message) for e in result.errors])
        raise TypeError(f"unexpected result type {type(result).__name__}")


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
