"""
tests/conftest.py -- Shared fixtures for userauth tests.

This module provides:
  - store: an empty in-memory UserStore
  - seeded_store: a store holding the standard users dataset
  - make_user: factory for a valid, unsaved User (keyword overrides applied)

The standard dataset:
  existing  -- login "existing", email existing@example.com, no roles
  designer  -- login "designer", designer role
  admin     -- login "admin", admin role
All three have the password "password".

PASSWORD_KDF_ROUNDS must be set before any auth/ import: auth/passwords.py
derives its dummy digest at import time with the configured round count,
and the production default would make every save noticeably slow.
"""

from __future__ import annotations

import os
from collections.abc import Generator

os.environ.setdefault("PASSWORD_KDF_ROUNDS", "2")

import pytest

from auth.models import User
from auth.records import save_user_or_raise
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _user_params(**overrides) -> dict:
    """Return constructor arguments for a valid user, with overrides applied."""
    params = {
        "name": "New User",
        "email": "new_user@example.com",
        "login": "new_user",
        "password": "password",
        "password_confirmation": "password",
    }
    params.update(overrides)
    return params


def _seed(store: UserStore) -> dict[str, User]:
    users = {
        "existing": User(**_user_params(name="Existing", login="existing", email="existing@example.com")),
        "designer": User(
            **_user_params(name="Designer", login="designer", email="designer@example.com"),
            roles={"designer": True},
        ),
        "admin": User(
            **_user_params(name="Admin", login="admin", email="admin@example.com"),
            roles={"admin": True},
        ),
    }
    for user in users.values():
        save_user_or_raise(store, user)
    return users


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """Fresh in-memory UserStore, closed after the test."""
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def seeded_store(store: UserStore) -> UserStore:
    """In-memory UserStore holding the standard users dataset."""
    _seed(store)
    return store


@pytest.fixture
def users(seeded_store: UserStore) -> dict[str, User]:
    """The standard dataset as loaded back from storage, keyed by login."""
    return {login: seeded_store.find_by_login(login) for login in ("existing", "designer", "admin")}


@pytest.fixture
def make_user():
    """Factory for a valid, unsaved User; keyword arguments override the defaults."""

    def _make(**overrides) -> User:
        return User(**_user_params(**overrides))

    return _make
