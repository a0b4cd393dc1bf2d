"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work; api/models.py owns the HTTP shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEFAULT_ROLE = "user"
ADMIN_ROLE = "admin"


@dataclass
class User:
    """A registered account.

    id is None until the store assigns one on create(). password_hash is a
    bcrypt digest and must never leave the service layer -- route handlers
    build UserResponse from id/username/role only.
    """

    username: str
    password_hash: str
    role: str = DEFAULT_ROLE
    id: int | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Claims recovered from a validated bearer token. Never persisted."""

    user_id: int
    role: str | None
    expires_at: datetime


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as established by the authorization gate.

    Handed to route handlers through Depends(); the user id here is the only
    source of "who is asking" -- never a client-supplied field.
    """

    user_id: int
    role: str | None
