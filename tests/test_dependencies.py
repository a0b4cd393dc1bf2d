"""
tests/test_dependencies.py -- The authorization gate in isolation.

A throwaway FastAPI app mounts authenticate() and require_roles() on dummy
routes so the gate can be tested independently of the account routes,
including role sets other than "admin" and tokens without a role claim.
"""

from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from api.main import account_error_handler
from auth.dependencies import authenticate, require_roles
from auth.errors import AccountError
from auth.models import Identity
from auth.tokens import ALGORITHM, TokenService

from conftest import TEST_SECRET, bearer


@pytest.fixture
def gate_client(tokens: TokenService) -> TestClient:
    app = FastAPI()
    app.state.token_service = tokens
    app.add_exception_handler(AccountError, account_error_handler)

    @app.get("/whoami")
    def whoami(identity: Identity = Depends(authenticate)) -> dict:
        return {"user_id": identity.user_id, "role": identity.role}

    @app.get("/ops")
    def ops(identity: Identity = Depends(require_roles("admin", "operator"))) -> dict:
        return {"user_id": identity.user_id}

    return TestClient(app)


def test_identity_comes_from_token(gate_client: TestClient, tokens: TokenService) -> None:
    resp = gate_client.get("/whoami", headers=bearer(tokens.issue(5, "auditor")))
    assert resp.status_code == 200
    assert resp.json() == {"user_id": 5, "role": "auditor"}


@pytest.mark.parametrize("header", ["", "Bearer", "bearer abc", "Basic dXNlcjpwYXNz"])
def test_bad_header_rejected_before_parsing(gate_client: TestClient, header: str) -> None:
    resp = gate_client.get("/whoami", headers={"Authorization": header} if header else {})
    assert resp.status_code == 401
    assert resp.json() == {"error": "missing or invalid Authorization header"}


def test_empty_bearer_token_is_invalid(gate_client: TestClient) -> None:
    resp = gate_client.get("/whoami", headers={"Authorization": "Bearer "})
    assert resp.status_code == 401


@pytest.mark.parametrize("role", ["admin", "operator"])
def test_any_allowed_role_passes(gate_client: TestClient, tokens: TokenService, role: str) -> None:
    resp = gate_client.get("/ops", headers=bearer(tokens.issue(1, role)))
    assert resp.status_code == 200


def test_other_role_forbidden(gate_client: TestClient, tokens: TokenService) -> None:
    resp = gate_client.get("/ops", headers=bearer(tokens.issue(1, "user")))
    assert resp.status_code == 403
    assert resp.json() == {"error": "insufficient role"}


def test_missing_role_forbidden(gate_client: TestClient) -> None:
    token = jwt.encode({"user_id": 1, "exp": 4102444800}, TEST_SECRET, algorithm=ALGORITHM)
    resp = gate_client.get("/ops", headers=bearer(token))
    assert resp.status_code == 403
    assert resp.json() == {"error": "forbidden"}


def test_role_stage_runs_authentication_first(gate_client: TestClient) -> None:
    """No token on a role-gated route is a 401, never a 403."""
    resp = gate_client.get("/ops")
    assert resp.status_code == 401
