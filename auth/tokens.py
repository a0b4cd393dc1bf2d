"""
auth/tokens.py -- Bearer token issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, role and exp (unix
       seconds). The signing secret is passed to TokenService at construction
       time -- nothing in this module reads configuration itself.

  Algorithm pinning: validate() rejects any token whose header declares an
       algorithm other than HS256 before the signature is checked, and the
       decode call only accepts HS256. A token claiming "none" or an
       asymmetric algorithm can never be verified against the shared secret.

  Expiry: checked against the injected clock rather than inside
       jwt.decode(), so tests can move time without sleeping.

  Uniform failure: every rejection raises InvalidToken("invalid token").
       The precise reason is logged, not returned -- a caller probing with
       crafted tokens learns nothing about why a token failed.

  Stateless: there is no session table. A token stays valid until exp even
       if the account is deleted or its role changes afterwards.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import InternalFailure, InvalidToken
from auth.models import TokenClaims

logger = logging.getLogger("credgate.auth")

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(hours=24)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and validate signed, time-limited bearer tokens.

    Usage:
        tokens = TokenService(secret=settings.secret_key)
        token = tokens.issue(user_id=1, role="user")
        claims = tokens.validate(token)   # TokenClaims or InvalidToken
    """

    def __init__(
        self,
        secret: str,
        lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty secret")
        self._secret = secret
        self.lifetime = lifetime
        self.clock = clock

    def issue(self, user_id: int, role: str) -> str:
        """Return a signed token for user_id/role expiring lifetime from now."""
        expires_at = self.clock() + self.lifetime
        payload = {
            "user_id": user_id,
            "role": role,
            "exp": int(expires_at.timestamp()),
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        except JWTError as exc:
            logger.error("Token signing failed: %s", exc)
            raise InternalFailure() from exc

    def validate(self, token: str) -> TokenClaims:
        """Verify algorithm, signature, claims and expiry; return the claims.

        Raises InvalidToken on any failure.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise _rejected("malformed token") from None
        if header.get("alg") != ALGORITHM:
            raise _rejected(f"unexpected algorithm {header.get('alg')!r}")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise _rejected(f"signature verification failed ({exc})") from exc

        user_id = payload.get("user_id")
        exp = payload.get("exp")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise _rejected("missing or non-integer user_id claim")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise _rejected("missing or non-numeric exp claim")

        role = payload.get("role")
        if role is not None and not isinstance(role, str):
            role = None

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if expires_at <= self.clock():
            raise _rejected(f"expired at {expires_at.isoformat()} for user_id={user_id}")

        return TokenClaims(user_id=user_id, role=role, expires_at=expires_at)


def _rejected(reason: str) -> InvalidToken:
    logger.info("Rejected bearer token: %s", reason)
    return InvalidToken()
