"""
auth/errors.py -- Domain error taxonomy for the account pipeline.

Every failure the service layer can report is an AccountError subclass
carrying the HTTP status it maps to. api/main.py registers one exception
handler for the base class, so routes never translate errors by hand.

The messages are what the client sees. They are deliberately coarse:
  - InvalidCredentials never says whether the username exists.
  - InvalidToken never says whether the token was malformed, expired, or
    signed with the wrong key.

Layer rule: stdlib only. No imports from api/ or core/.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for all expected, client-reportable failures."""

    status_code: int = 500
    message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AccountError):
    status_code = 400
    message = "invalid request"


class DuplicateUsername(AccountError):
    status_code = 400
    message = "username already taken"


class InvalidCredentials(AccountError):
    status_code = 401
    message = "invalid credentials"


class Unauthenticated(AccountError):
    status_code = 401
    message = "unauthenticated"


class InvalidToken(Unauthenticated):
    """Raised by TokenService.validate for every kind of bad token."""

    message = "invalid token"


class Forbidden(AccountError):
    status_code = 403
    message = "forbidden"


class NotFound(AccountError):
    status_code = 404
    message = "user not found"


class InternalFailure(AccountError):
    """Unexpected fault. The message sent to the client is always generic."""

    status_code = 500
    message = "internal error"


class HashingFailure(InternalFailure):
    pass
