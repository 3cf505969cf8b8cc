"""Unit tests for auth/store.py -- the credential store.

Covers:
- create_user() / get_by_email() / get_by_id() round trip
- Duplicate email raises IntegrityError
- Roles outside the closed set are rejected on create and update
- Public lookups never carry the password hash
- update_user() field whitelist, count_admins(), delete_user()
"""

import dataclasses

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import PublicUser, User
from auth.store import UserStore


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


def _user(email: str = "dana@example.com", role: str = "guest") -> User:
    return User(email=email, name="Dana", role=role, password_hash="$2b$04$placeholderplaceholderplac")


def test_has_users_false_on_empty_store(store: UserStore) -> None:
    assert store.has_users() is False


def test_create_and_lookup(store: UserStore) -> None:
    uid = store.create_user(_user())
    assert store.has_users() is True

    by_email = store.get_by_email("dana@example.com")
    by_id = store.get_by_id(uid)
    assert by_email == by_id
    assert by_email.id == uid
    assert by_email.role == "guest"
    assert by_email.password_hash.startswith("$2b$")
    assert by_email.created_at


def test_email_lookup_is_exact(store: UserStore) -> None:
    store.create_user(_user())
    assert store.get_by_email("DANA@example.com") is None
    assert store.get_by_email("missing@example.com") is None


def test_duplicate_email_raises_integrity_error(store: UserStore) -> None:
    store.create_user(_user())
    with pytest.raises(IntegrityError):
        store.create_user(_user())


def test_unknown_role_rejected_on_create(store: UserStore) -> None:
    with pytest.raises(ValueError):
        store.create_user(_user(role="superuser"))
    assert store.has_users() is False


def test_missing_hash_rejected(store: UserStore) -> None:
    with pytest.raises(ValueError):
        store.create_user(User(email="e@example.com", name="E", role="guest", password_hash=None))


def test_public_profile_has_no_hash_field(store: UserStore) -> None:
    uid = store.create_user(_user())
    profile = store.get_public_by_id(uid)
    assert isinstance(profile, PublicUser)
    assert "password_hash" not in {f.name for f in dataclasses.fields(profile)}
    assert profile.email == "dana@example.com"


def test_list_users_returns_public_profiles_in_creation_order(store: UserStore) -> None:
    store.create_user(_user("a@example.com"))
    store.create_user(_user("b@example.com", role="admin"))
    users = store.list_users()
    assert [u.email for u in users] == ["a@example.com", "b@example.com"]
    assert all(isinstance(u, PublicUser) for u in users)


def test_update_role(store: UserStore) -> None:
    uid = store.create_user(_user())
    assert store.update_user(uid, role="editor") is True
    assert store.get_by_id(uid).role == "editor"


def test_update_rejects_unknown_role(store: UserStore) -> None:
    uid = store.create_user(_user())
    with pytest.raises(ValueError):
        store.update_user(uid, role="owner")
    assert store.get_by_id(uid).role == "guest"


def test_update_rejects_non_mutable_fields(store: UserStore) -> None:
    uid = store.create_user(_user())
    with pytest.raises(ValueError):
        store.update_user(uid, email="other@example.com")


def test_update_missing_user_returns_false(store: UserStore) -> None:
    assert store.update_user(999, name="Ghost") is False


def test_count_admins(store: UserStore) -> None:
    store.create_user(_user("a@example.com", role="admin"))
    store.create_user(_user("b@example.com", role="editor"))
    store.create_user(_user("c@example.com", role="admin"))
    assert store.count_admins() == 2


def test_delete_user(store: UserStore) -> None:
    uid = store.create_user(_user())
    assert store.delete_user(uid) is True
    assert store.get_by_id(uid) is None
    assert store.delete_user(uid) is False
