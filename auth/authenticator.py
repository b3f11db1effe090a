"""
auth/authenticator.py -- Password login and role checks.

authenticate() answers "who is this?", has_role() answers "may they?".

Both failure modes of a login -- no such login/email, wrong password --
return None. Callers must not try to tell them apart, and the function
makes that hard: it always runs exactly one KDF verification, against the
dummy pair from auth/passwords.py when no record matched or the record
has no stored credential, so response time does not reveal whether an
identifier exists.
"""

from __future__ import annotations

import logging

from auth.models import Role, User
from auth.passwords import burn_verification, verify_password
from auth.store import UserStore

logger = logging.getLogger("userauth.auth")

_ROLE_NAMES = frozenset(role.value for role in Role)


class PermissionDenied(Exception):
    """Raised by require_role() when the user lacks the role."""


def authenticate(store: UserStore, identifier: str, password: str) -> User | None:
    """Return the user whose login or email is identifier, if password matches.

    Returns None on any failure. A blank password never authenticates, even
    for a record whose digest was derived from the empty string.
    """
    user = store.find_by_login_or_email(identifier) if identifier else None
    if user is None or not password or not user.salt or not user.password_digest:
        # Equalize timing -- do NOT return early before running the KDF
        burn_verification()
        logger.info("Authentication failed")
        return None
    if not verify_password(user.salt, password, user.password_digest):
        logger.info("Authentication failed")
        return None
    return user


def has_role(user: User, role: Role | str) -> bool:
    """Return True if user carries role.

    Unknown role names are simply False; they are not an error.
    """
    name = role.value if isinstance(role, Role) else str(role)
    if name not in _ROLE_NAMES:
        return False
    return bool(user.roles.get(name, False))


def require_role(user: User, role: Role | str) -> User:
    """Return user if it has role, else raise PermissionDenied."""
    if not has_role(user, role):
        name = role.value if isinstance(role, Role) else role
        raise PermissionDenied(f"{name} role required")
    return user
