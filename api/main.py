"""
api/main.py -- FastAPI application entry point for Credgate.

Run with:  python main.py serve
           uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware   -- adds CORS headers for configured browser origins
  2. log_requests     -- one access-log line per request with latency

Lifespan builds the process-wide components once -- UserStore, PasswordHasher,
TokenService, AccountService -- from Settings and places them on app.state.
Nothing is mutated after startup; shutdown disposes the store engine.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.users import router as users_router
from auth.errors import AccountError
from auth.passwords import PasswordHasher
from auth.service import AccountService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("credgate.api")

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the shared components on startup; release the store on shutdown.

    Startup order follows the dependency graph: store, hasher and token
    service first, then the AccountService that composes them.
    """
    settings = get_settings()
    logger.info("Credgate API starting up")
    app.state.user_store = UserStore(db_url=settings.db_url)
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_service = TokenService(
        secret=settings.secret_key,
        lifetime=timedelta(seconds=settings.token_expire_seconds),
    )
    app.state.account_service = AccountService(
        store=app.state.user_store,
        hasher=app.state.password_hasher,
        tokens=app.state.token_service,
    )
    logger.info("User store initialized (%s)", app.state.user_store.engine.url.render_as_string(hide_password=True))

    yield

    app.state.user_store.close()
    logger.info("Credgate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Credgate API",
    description="User registration, password login, bearer tokens and role-gated endpoints.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(users_router, tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves the API as {"error": "<message>"} so clients parse one
# shape regardless of status code.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Map domain errors to their status code.

    5xx domain errors (hashing or signing faults) are logged with traceback and
    answered with the generic message only.
    """
    if exc.status_code >= 500:
        logger.error("Internal failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(500, "internal error")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error(exc.status_code, exc.message, headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the first validation problem, e.g. "username: String should have at least 3 characters"."""
    errors = exc.errors()
    if not errors:
        return _error(400, "invalid request")
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query"))
    message = first.get("msg", "invalid request")
    return _error(400, f"{location}: {message}" if location else message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors (e.g. database unreachable).

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal error")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication -- load
# balancers and monitors call it.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
