"""
auth/service.py -- Account operations: register, login, profile, delete.

AccountService composes the repository, password hasher and token service
it is given. It holds no state of its own, so one instance is shared by
every request.

Login policy: an unknown username and a wrong password raise the same
InvalidCredentials, and both paths run exactly one bcrypt verification, so
neither the response body nor its timing tells a caller which usernames
exist.

Delete policy: delete_user() removes whatever id it is given. Who may call
it is decided upstream by the admin role gate; there is no ownership check
here, so any admin can delete any account.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.errors import InvalidCredentials, NotFound, ValidationError
from auth.models import DEFAULT_ROLE, User
from auth.passwords import PasswordHasher
from auth.store import UserRepository
from auth.tokens import TokenService

logger = logging.getLogger("credgate.auth")

USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 72  # bcrypt input limit in bytes


def _validate_username(username: str) -> None:
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        raise ValidationError(f"username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters")


def _validate_password(password: str) -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(f"password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters")


class AccountService:
    def __init__(self, store: UserRepository, hasher: PasswordHasher, tokens: TokenService) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    def register(self, username: str, password: str, role: str | None = None) -> User:
        """Create an account. An empty or missing role becomes DEFAULT_ROLE.

        Raises ValidationError or DuplicateUsername (both client errors).
        """
        _validate_username(username)
        _validate_password(password)
        user = User(
            username=username,
            password_hash=self.hasher.hash(password),
            role=role or DEFAULT_ROLE,
        )
        return self.store.create(user)

    def login(self, username: str, password: str) -> str:
        """Check credentials and return a freshly issued bearer token."""
        if len(password) > PASSWORD_MAX_LEN:
            # No stored password is this long; bcrypt would only see a prefix of it.
            self.hasher.verify_dummy(password)
            raise InvalidCredentials()
        try:
            user = self.store.find_by_username(username)
        except NotFound:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.verify_dummy(password)
            raise InvalidCredentials() from None
        if not self.hasher.verify(user.password_hash, password):
            raise InvalidCredentials()
        logger.info("Login succeeded for user id=%d", user.id)
        return self.tokens.issue(user.id, user.role)

    def get_profile(self, user_id: int) -> User:
        """Return the caller's account. NotFound if it was deleted after login."""
        return self.store.find_by_id(user_id)

    def update_profile(
        self,
        user_id: int,
        username: str | None = None,
        password: str | None = None,
    ) -> None:
        """Change the caller's username and/or password.

        At least one of the two must be given. role is never touched.
        """
        if username is None and password is None:
            raise ValidationError("nothing to update")
        if username is not None:
            _validate_username(username)
        if password is not None:
            _validate_password(password)

        user = self.store.find_by_id(user_id)
        if username is not None:
            user.username = username
        if password is not None:
            user.password_hash = self.hasher.hash(password)
        self.store.update(user)
        logger.info(
            "Updated user id=%d (username=%s, password=%s)",
            user_id,
            username is not None,
            password is not None,
        )

    def delete_user(self, target_id: int) -> None:
        """Delete any account by id. A missing id raises NotFound (404), not a silent success."""
        self.store.delete(target_id)
