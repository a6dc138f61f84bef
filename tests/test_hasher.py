"""Unit tests for auth/hasher.py."""

import pytest

from auth.hasher import Hasher


@pytest.fixture
def hasher() -> Hasher:
    return Hasher(rounds=4)


def test_hash_verifies(hasher):
    hashed = hasher.hash("pw1")
    assert hashed.startswith("$2b$04$")
    assert hasher.verify("pw1", hashed)
    assert not hasher.verify("pw2", hashed)


def test_hash_is_salted(hasher):
    assert hasher.hash("pw1") != hasher.hash("pw1")


@pytest.mark.parametrize("stored", ["", "not-a-bcrypt-hash", "$2b$04$short"])
def test_malformed_hash_does_not_verify(hasher, stored):
    assert hasher.verify("pw1", stored) is False
