"""
api/routes/users.py -- Authenticated profile endpoints and admin user deletion.

Routes:
  GET    /profile     -- the caller's account (bearer token)
  PUT    /profile     -- change the caller's username and/or password (bearer token)
  DELETE /user/{id}   -- delete any account (bearer token + admin role)

The caller's id always comes from the Identity produced by the
authorization gate, never from the request body or query string.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.models import ErrorResponse, ProfileUpdate, UserResponse
from auth.dependencies import authenticate, get_account_service, require_admin
from auth.models import Identity
from auth.service import AccountService

# Auth policy:
# - GET    /profile:    requires auth (authenticate)
# - PUT    /profile:    requires auth (authenticate)
# - DELETE /user/{id}:  requires admin (require_admin, which runs authenticate first)
router = APIRouter(
    responses={401: {"model": ErrorResponse}},
)


@router.get("/profile", response_model=UserResponse, responses={404: {"model": ErrorResponse}})
def get_profile(
    identity: Identity = Depends(authenticate),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Return the authenticated user's id, username and role.

    404 if the account was deleted after the token was issued -- tokens are
    stateless and stay valid until they expire.
    """
    user = accounts.get_profile(identity.user_id)
    return UserResponse.from_user(user)


@router.put(
    "/profile",
    status_code=204,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(authenticate),
    accounts: AccountService = Depends(get_account_service),
) -> Response:
    """Update username and/or password. Sending neither is a 400."""
    accounts.update_profile(identity.user_id, username=body.username, password=body.password)
    return Response(status_code=204)


@router.delete(
    "/user/{user_id}",
    status_code=204,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def delete_user(
    user_id: int,
    _admin: Identity = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> Response:
    """Permanently delete the account with the given id. Admin only."""
    accounts.delete_user(user_id)
    return Response(status_code=204)
