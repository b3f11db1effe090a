"""
auth/tokens.py -- Remember-me session tokens.

Security design decisions:
  Token: secrets.token_hex(32) -- 256 bits from the OS CSPRNG. The token is
       opaque; it carries no user data and is only meaningful as a lookup key
       in the users table. Each remember() overwrites the previous token, so
       at most one remembered session exists per user.

  Expiry: now + Settings.session_timeout (two weeks by default). Stored next
       to the token and cleared with it. resume_session() treats an expiry
       equal to now as expired.

  Clock: utc_now() is the default clock. Every time-dependent function also
       takes an explicit now so expiry can be tested without sleeping.

Transport is not handled here: callers put the token in a cookie (or
anywhere else) and hand it back to resume_session() on the next request.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

from auth.models import User
from auth.store import PersistenceFailure, UserStore
from core.config import get_settings

logger = logging.getLogger("userauth.auth.tokens")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_token() -> str:
    """Return a new opaque token: 64 hex characters, 256 bits of entropy."""
    return secrets.token_hex(32)


def remember(
    store: UserStore,
    user: User,
    now: datetime | None = None,
    timeout: timedelta | None = None,
) -> User:
    """Issue a fresh remember-me token for user and persist it.

    Args:
        store:   Storage collaborator the record is saved through.
        user:    The user to remember. Unsaved users are inserted.
        now:     Issue time; defaults to utc_now().
        timeout: Token lifetime; defaults to Settings.session_timeout.

    Raises ValueError if timeout is not positive, and PersistenceFailure if
    the stored row has gone (the in-memory token is then rolled back). The
    record is saved without validation -- only the token columns are meant
    to change here.
    """
    if now is None:
        now = utc_now()
    if timeout is None:
        timeout = get_settings().session_timeout
    if timeout <= timedelta(0):
        raise ValueError("session timeout must be positive")

    _save_token(store, user, generate_session_token(), now + timeout)
    logger.info("Remembered user %s until %s", user.id, user.session_token_expires_at.isoformat())
    return user


def forget(store: UserStore, user: User) -> User:
    """Clear user's remember-me token and expiry, and persist.

    Raises PersistenceFailure if the stored row has gone.
    """
    _save_token(store, user, None, None)
    logger.info("Forgot session for user %s", user.id)
    return user


def _save_token(store: UserStore, user: User, token: str | None, expires_at: datetime | None) -> None:
    """Set token and expiry together and persist; restore both if nothing was written."""
    prior = (user.session_token, user.session_token_expires_at)
    user.session_token = token
    user.session_token_expires_at = expires_at
    if not store.save(user):
        user.session_token, user.session_token_expires_at = prior
        logger.warning("Session token for user %s not saved; no stored row with that id", user.id)
        raise PersistenceFailure(f"user {user.id} no longer exists")


def resume_session(store: UserStore, token: str | None, now: datetime | None = None) -> User | None:
    """Return the user holding token if it has not expired, else None.

    Blank, unknown, and expired tokens are all just None; the caller should
    fall back to a password login.
    """
    if not token:
        return None
    user = store.find_by_session_token(token)
    if user is None or user.session_token_expires_at is None:
        return None
    if now is None:
        now = utc_now()
    if user.session_token_expires_at <= now:
        logger.debug("Session token for user %s has expired", user.id)
        return None
    return user
