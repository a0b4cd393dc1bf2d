"""Unit tests for auth/passwords.py -- bcrypt hashing and verification."""

from unittest.mock import patch

import pytest

from auth.errors import HashingFailure, InternalFailure
from auth.passwords import PasswordHasher


def test_hash_is_not_plaintext_and_verifies(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("secret1")
    assert hashed != "secret1"
    assert hashed.startswith("$2")
    assert hasher.verify(hashed, "secret1") is True


def test_wrong_password_does_not_verify(hasher: PasswordHasher) -> None:
    hashed = hasher.hash("secret1")
    assert hasher.verify(hashed, "secret2") is False


def test_same_password_gets_distinct_salts(hasher: PasswordHasher) -> None:
    """Two hashes of one password differ, yet both verify."""
    first = hasher.hash("secret1")
    second = hasher.hash("secret1")
    assert first != second
    assert hasher.verify(first, "secret1")
    assert hasher.verify(second, "secret1")


def test_cost_factor_is_embedded(hasher: PasswordHasher) -> None:
    assert hasher.hash("secret1").split("$")[2] == "04"


def test_malformed_stored_hash_is_a_mismatch(hasher: PasswordHasher) -> None:
    assert hasher.verify("not-a-bcrypt-hash", "secret1") is False
    assert hasher.verify("", "secret1") is False


def test_hashing_fault_raises_hashing_failure(hasher: PasswordHasher) -> None:
    with patch("auth.passwords.bcrypt.gensalt", side_effect=ValueError("no entropy")):
        with pytest.raises(HashingFailure) as excinfo:
            hasher.hash("secret1")
    assert isinstance(excinfo.value, InternalFailure)
    assert excinfo.value.status_code == 500


def test_verify_dummy_reuses_one_hash(hasher: PasswordHasher) -> None:
    hasher.verify_dummy("whatever")
    dummy = hasher._dummy_hash
    assert dummy is not None
    hasher.verify_dummy("something else")
    assert hasher._dummy_hash == dummy
