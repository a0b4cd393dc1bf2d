"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly rather than through passlib: passlib's internal
wrap-bug detection feeds bcrypt a password longer than 72 bytes, which
bcrypt 4.x rejects with an explicit error.

bcrypt only considers the first 72 bytes of its input. The API layer caps
password fields at 72 characters (api/models.py), which keeps ASCII input
under that limit; longer multi-byte input is truncated here the same way
bcrypt would.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.errors import HashingFailure

logger = logging.getLogger("credgate.auth")

DEFAULT_ROUNDS = 12
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted, adaptive one-way hashing of plaintext passwords.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("secret1")
        hasher.verify(stored, "secret1")   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of plain with a fresh random salt.

        Raises HashingFailure if bcrypt cannot produce a hash (salt generation
        or resource failure) -- a server fault, not a client error.
        """
        try:
            return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError, OSError) as exc:
            logger.error("Password hashing failed: %s", type(exc).__name__)
            raise HashingFailure() from exc

    def verify(self, hashed: str, plain: str) -> bool:
        """Return True if plain matches hashed.

        A malformed stored hash counts as a mismatch: the caller reports
        invalid credentials either way.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plain: str) -> None:
        """Spend one bcrypt verification on a throwaway hash.

        Login calls this when the username does not exist so the response
        takes as long as a wrong-password attempt, and timing does not reveal
        which usernames are registered. The dummy hash is computed on first
        use with the same cost factor as real hashes.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("credgate_timing_dummy")
        self.verify(self._dummy_hash, plain)
