"""
api/routes/auth.py -- Public account endpoints: registration and login.

Routes:
  POST /register   -- create an account; 201 {id, username, role}
  POST /login      -- exchange credentials for a bearer token; 200 {token}

Both handlers are plain `def`: FastAPI runs them in its threadpool, so the
deliberately slow bcrypt call never blocks the event loop.

Security:
  Login returns the same 401 "invalid credentials" for an unknown username
  and a wrong password; AccountService also equalizes their timing.
  Cache-Control: no-store on login responses keeps tokens out of caches.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.models import ErrorResponse, LoginRequest, RegisterRequest, TokenResponse, UserResponse
from auth.dependencies import get_account_service
from auth.service import AccountService

# Auth policy:
# - POST /register: public -- anyone may create an account
# - POST /login:    public -- login endpoint must be unauthenticated
router = APIRouter()


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    """Create a new account. Duplicate usernames and invalid input are 400."""
    user = accounts.register(body.username, body.password, body.role)
    return UserResponse.from_user(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
)
def login(
    body: LoginRequest,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
) -> TokenResponse:
    """Authenticate with username and password; returns a bearer token.

    Send it back as: Authorization: Bearer <token>
    """
    token = accounts.login(body.username, body.password)
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=token)
