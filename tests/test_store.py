"""Unit tests for auth/store.py -- UserStore credential queries.

Covers:
- create() assigns ids and timestamps; usernames are unique
- find_by_username() is exact-match and returns None when absent
- find_by_id_and_token() matches only the current (id, access_token) pair
- update_tokens() overwrites the pair wholesale
"""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User


def _user(username: str = "alice", **fields) -> User:
    return User(username=username, hashed_password="$2b$04$not-a-real-hash", **fields)


def test_create_assigns_sequential_ids(store):
    assert store.create(_user("alice")) == 1
    assert store.create(_user("bob")) == 2
    assert store.count_users() == 2


def test_create_stores_profile_fields_and_timestamps(store):
    uid = store.create(_user(name="Alice", email="alice@example.com", url="https://example.com/alice"))
    user = store.get_by_id(uid)
    assert user.name == "Alice"
    assert user.email == "alice@example.com"
    assert user.url == "https://example.com/alice"
    assert user.created_at
    assert user.updated_at == user.created_at
    assert user.access_token is None
    assert user.refresh_token is None


def test_duplicate_username_raises_integrity_error(store):
    store.create(_user("alice"))
    with pytest.raises(IntegrityError):
        store.create(_user("alice"))


def test_find_by_username(store):
    uid = store.create(_user("alice"))
    assert store.find_by_username("alice").id == uid
    assert store.find_by_username("ALICE") is None
    assert store.find_by_username("nobody") is None


def test_find_by_id_and_token_requires_both(store):
    alice = store.create(_user("alice"))
    bob = store.create(_user("bob"))
    store.update_tokens(alice, "access-a", "refresh-a")
    store.update_tokens(bob, "access-b", "refresh-b")

    assert store.find_by_id_and_token(alice, "access-a").username == "alice"
    assert store.find_by_id_and_token(alice, "access-b") is None
    assert store.find_by_id_and_token(bob, "access-a") is None
    assert store.find_by_id_and_token(999, "access-a") is None


def test_find_by_id_and_token_before_first_login(store):
    uid = store.create(_user("alice"))
    assert store.find_by_id_and_token(uid, "") is None


def test_update_tokens_overwrites_pair(store):
    uid = store.create(_user("alice"))
    store.update_tokens(uid, "access-1", "refresh-1")
    store.update_tokens(uid, "access-2", "refresh-2")

    user = store.get_by_id(uid)
    assert (user.access_token, user.refresh_token) == ("access-2", "refresh-2")
    assert store.find_by_id_and_token(uid, "access-1") is None


def test_get_by_id_missing(store):
    assert store.get_by_id(42) is None


@pytest.mark.parametrize("user_id", [0, -1, 2**63, 10**20])
def test_unstorable_id_finds_nothing(store, user_id):
    uid = store.create(_user("alice"))
    store.update_tokens(uid, "access-a", "refresh-a")

    assert store.find_by_id_and_token(user_id, "access-a") is None
    assert store.get_by_id(user_id) is None
