"""
API request and response models for Credgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Length limits here mirror the ones AccountService enforces, so malformed
bodies are rejected (400) before any bcrypt work happens.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from auth.service import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, USERNAME_MAX_LEN, USERNAME_MIN_LEN

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register. role defaults to "user" when omitted or empty."""

    username: str = Field(min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Optional[str] = Field(default=None, max_length=64)


class LoginRequest(BaseModel):
    """Request body for POST /login.

    Only presence is checked here. Length rules are not applied: a login
    with a too-short or too-long password must fail as invalid credentials
    (401), not as a validation error that hints at the password policy.
    """

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    """Request body for PUT /profile. Both fields optional; at least one required."""

    username: Optional[str] = Field(default=None, min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: Optional[str] = Field(default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public projection of a user. password_hash is never included."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, role=user.role)


class TokenResponse(BaseModel):
    """Response for POST /login."""

    model_config = ConfigDict(frozen=True)

    token: str


class ErrorResponse(BaseModel):
    """Envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
