"""
auth/dependencies.py -- FastAPI Depends() helpers forming the authorization gate.

Two stages, always in this order:
  1. authenticate()   -- requires "Authorization: Bearer <token>" and a token
                         that TokenService.validate() accepts. Produces the
                         typed Identity for the request.
  2. require_roles()  -- factory for a dependency that itself depends on
                         authenticate(), then checks Identity.role against an
                         allowed set.

Because the role dependency declares authenticate() as its own dependency,
attaching require_admin to a route always runs stage 1 first; there is no
way to mount the role check on its own.

Failures raise AccountError subclasses (Unauthenticated -> 401, Forbidden ->
403); api/main.py turns them into {"error": ...} responses.

Layer rule: may import fastapi (this module is part of the DI system), but
nothing from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from auth.errors import Forbidden, InvalidToken, Unauthenticated
from auth.models import ADMIN_ROLE, Identity
from auth.service import AccountService
from auth.tokens import TokenService

_BEARER_PREFIX = "Bearer "


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def authenticate(request: Request) -> Identity:
    """Require a valid bearer token. Raises Unauthenticated (401) otherwise.

    The header is checked before any token parsing: a missing header or a
    non-Bearer scheme is rejected without touching the token service.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        raise Unauthenticated("missing or invalid Authorization header")

    tokens: TokenService = request.app.state.token_service
    try:
        claims = tokens.validate(auth_header[len(_BEARER_PREFIX) :].strip())
    except InvalidToken:
        raise Unauthenticated("invalid token") from None
    return Identity(user_id=claims.user_id, role=claims.role)


def require_roles(*roles: str) -> Callable[[Identity], Identity]:
    """Build a dependency that admits only identities whose role is in roles.

    Use as a FastAPI dependency:
        @router.delete("/things/{id}")
        def route(identity: Identity = Depends(require_roles("admin", "operator"))): ...
    """
    allowed = frozenset(roles)

    def _check(identity: Identity = Depends(authenticate)) -> Identity:
        if not identity.role:
            raise Forbidden("forbidden")
        if identity.role not in allowed:
            raise Forbidden("insufficient role")
        return identity

    return _check


require_admin = require_roles(ADMIN_ROLE)
