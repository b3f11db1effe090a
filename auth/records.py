"""
auth/records.py -- User lifecycle: building from input, encrypting, saving.

save_user() is the only sanctioned way to write a User with credential
changes. It validates, derives the digest, persists, and then drops the
plaintext from memory:

    errors = save_user(store, user)
    if errors:
        ...show errors, nothing was written...

Password rule: a non-empty user.password is encrypted on save; an empty one
leaves the stored digest alone. A brand-new record with no password gets the
digest of the empty string, so every saved user has a salt.

Mass assignment: user_from_input() / assign_attributes() copy only the keys
named in an explicit mask. The default mask is the immutable
UNPROTECTED_ATTRIBUTES tuple; callers that need a different one pass it in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from auth.models import FieldError, User
from auth.passwords import generate_salt, hash_password
from auth.store import PersistenceFailure, UserStore
from auth.validation import full_messages, validate_user

logger = logging.getLogger("userauth.auth")

# Fields an untrusted caller (signup form, profile page) may set directly.
UNPROTECTED_ATTRIBUTES: tuple[str, ...] = (
    "name",
    "email",
    "login",
    "password",
    "password_confirmation",
    "locale",
)


class RecordInvalid(Exception):
    """Raised by save_user_or_raise() when validation fails."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("Validation failed: " + ", ".join(full_messages(errors)))


# ---------------------------------------------------------------------------
# Building records from untrusted input
# ---------------------------------------------------------------------------


def assign_attributes(
    user: User,
    data: Mapping[str, object],
    allowed: Iterable[str] = UNPROTECTED_ATTRIBUTES,
) -> User:
    """Copy the masked keys of data onto user and return it.

    Keys outside the mask are ignored -- a signup form cannot grant itself
    roles or overwrite a salt by posting extra fields.
    """
    allowed = frozenset(allowed)
    for key, value in data.items():
        if key not in allowed:
            logger.debug("Ignoring protected attribute %r in user input", key)
            continue
        if not hasattr(user, key):
            logger.debug("Ignoring unknown attribute %r in user input", key)
            continue
        setattr(user, key, value)
    return user


def user_from_input(data: Mapping[str, object], allowed: Iterable[str] = UNPROTECTED_ATTRIBUTES) -> User:
    """Build a new, unsaved User from an untrusted mapping."""
    return assign_attributes(User(), data, allowed)


# ---------------------------------------------------------------------------
# Encryption and save
# ---------------------------------------------------------------------------


def encrypt_password(user: User) -> None:
    """Derive password_digest from the transient password, in place.

    - non-empty password: create the salt if missing, then re-derive.
    - empty password, no digest yet: digest of "" under a fresh salt.
    - empty password, digest present: no change.
    """
    if not user.password and user.password_digest is not None:
        return
    if user.salt is None:
        user.salt = generate_salt()
    user.password_digest = hash_password(user.salt, user.password or "")


def save_user(store: UserStore, user: User) -> list[FieldError]:
    """Validate, encrypt, and persist user.

    Returns the validation errors; an empty list means the record was saved.
    On failure neither the record nor storage is modified.

    Raises PersistenceFailure if the store reports that nothing was written
    (the row was deleted in the meantime). SQLAlchemy errors propagate from
    the store unchanged. In both cases the in-memory credential fields are
    rolled back and the plaintext is kept, so the caller can retry.
    """
    errors = validate_user(user, store)
    if errors:
        logger.debug(
            "User %s not saved; invalid fields: %s",
            user.id if user.id is not None else "(new)",
            sorted({e.field for e in errors}),
        )
        return errors

    prior = (user.salt, user.password_digest)
    encrypt_password(user)
    is_new = user.id is None
    try:
        saved = store.save(user)
    except Exception:
        user.salt, user.password_digest = prior
        raise
    if not saved:
        user.salt, user.password_digest = prior
        logger.warning("User %s not saved; no stored row with that id", user.id)
        raise PersistenceFailure(f"user {user.id} no longer exists")

    user.password = ""
    user.password_confirmation = None
    logger.info("User %d %s", user.id, "created" if is_new else "updated")
    return []


def save_user_or_raise(store: UserStore, user: User) -> User:
    """Like save_user(), but raise RecordInvalid instead of returning errors."""
    errors = save_user(store, user)
    if errors:
        raise RecordInvalid(errors)
    return user
