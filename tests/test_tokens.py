"""Tests for auth/tokens.py -- remember-me tokens.

Covers:
- remember() issues a non-empty token with an expiry strictly after now
- the default timeout comes from Settings (two weeks)
- each remember() replaces the previous token
- forget() clears token and expiry together, in memory and in storage
- resume_session() accepts live tokens and rejects expired/forgotten ones
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from auth.models import User
from auth.store import PersistenceFailure, UserStore
from auth.tokens import forget, generate_session_token, remember, resume_session

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestGenerateSessionToken:
    def test_token_is_64_hex_chars(self) -> None:
        token = generate_session_token()
        assert len(token) == 64
        int(token, 16)

    def test_tokens_differ(self) -> None:
        assert len({generate_session_token() for _ in range(20)}) == 20


class TestRemember:
    def test_remembers_user(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["existing"], now=_NOW)
        reloaded = seeded_store.get_by_id(user.id)
        assert reloaded.session_token
        assert reloaded.session_token == user.session_token

    def test_expiry_strictly_after_now(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["existing"], now=_NOW)
        assert user.session_token_expires_at > _NOW
        assert seeded_store.get_by_id(user.id).session_token_expires_at == user.session_token_expires_at

    def test_default_timeout_is_two_weeks(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["existing"], now=_NOW)
        assert user.session_token_expires_at == _NOW + timedelta(weeks=2)

    def test_explicit_timeout(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["existing"], now=_NOW, timeout=timedelta(hours=1))
        assert user.session_token_expires_at == _NOW + timedelta(hours=1)

    def test_default_clock(self, users: dict[str, User], seeded_store: UserStore) -> None:
        before = datetime.now(timezone.utc)
        user = remember(seeded_store, users["existing"])
        assert user.session_token_expires_at > before

    @pytest.mark.parametrize("timeout", [timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_timeout_rejected(self, users: dict[str, User], seeded_store: UserStore, timeout) -> None:
        user = users["existing"]
        with pytest.raises(ValueError):
            remember(seeded_store, user, now=_NOW, timeout=timeout)
        assert seeded_store.get_by_id(user.id).session_token is None

    def test_new_token_each_time(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = users["existing"]
        first = remember(seeded_store, user, now=_NOW).session_token
        second = remember(seeded_store, user, now=_NOW).session_token
        assert first != second
        assert seeded_store.find_by_session_token(first) is None

    def test_password_digest_untouched(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = users["existing"]
        digest = user.password_digest
        remember(seeded_store, user, now=_NOW)
        assert seeded_store.get_by_id(user.id).password_digest == digest


class TestForget:
    def test_forgets_user(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["existing"], now=_NOW)
        forget(seeded_store, user)
        assert user.session_token is None
        assert user.session_token_expires_at is None
        reloaded = seeded_store.get_by_id(user.id)
        assert reloaded.session_token is None
        assert reloaded.session_token_expires_at is None

    def test_forget_without_remember(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = forget(seeded_store, users["existing"])
        assert user.session_token is None

    def test_deleted_row_is_a_persistence_failure(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["existing"], now=_NOW)
        token, expires = user.session_token, user.session_token_expires_at
        seeded_store.delete_user(user.id)
        with pytest.raises(PersistenceFailure):
            forget(seeded_store, user)
        assert (user.session_token, user.session_token_expires_at) == (token, expires)
        with pytest.raises(PersistenceFailure):
            remember(seeded_store, user, now=_NOW)
        assert user.session_token == token


class TestResumeSession:
    def test_live_token(self, users: dict[str, User], seeded_store: UserStore) -> None:
        token = remember(seeded_store, users["designer"], now=_NOW).session_token
        resumed = resume_session(seeded_store, token, now=_NOW + timedelta(days=1))
        assert resumed is not None
        assert resumed.login == "designer"

    def test_expired_token(self, users: dict[str, User], seeded_store: UserStore) -> None:
        token = remember(seeded_store, users["designer"], now=_NOW, timeout=timedelta(hours=1)).session_token
        assert resume_session(seeded_store, token, now=_NOW + timedelta(hours=1)) is None
        assert resume_session(seeded_store, token, now=_NOW + timedelta(hours=2)) is None

    def test_forgotten_token(self, users: dict[str, User], seeded_store: UserStore) -> None:
        user = remember(seeded_store, users["designer"], now=_NOW)
        token = user.session_token
        forget(seeded_store, user)
        assert resume_session(seeded_store, token, now=_NOW) is None

    @pytest.mark.parametrize("token", [None, "", "0" * 64])
    def test_blank_or_unknown_token(self, seeded_store: UserStore, token) -> None:
        assert resume_session(seeded_store, token, now=_NOW) is None
