"""
auth/validation.py -- Field rules for a candidate User.

validate_user() runs every rule and returns every failure; nothing is
short-circuited, so a form can show all problems at once. An empty list
means the record may be saved.

Validation is never exceptional here: invalid input is the expected shape
of "not ready to save", so failures come back as FieldError values rather
than being raised. auth/records.save_user_or_raise() is the one place that
turns them into an exception.

Blank rules (the easy ones to get wrong):
  email    -- optional; blank is valid.
  login    -- optional; blank is valid.
  password -- blank means "keep the current digest", never "too short".
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from auth.models import FieldError, User

if TYPE_CHECKING:
    from auth.store import UserStore

NAME_MAX = 100
EMAIL_MAX = 255
LOGIN_MIN, LOGIN_MAX = 3, 40
PASSWORD_MIN, PASSWORD_MAX = 5, 40

# local@domain.tld: no whitespace or second @ in the local part, one or more
# dotted domain labels, alphabetic TLD of at least two letters.
EMAIL_PATTERN = re.compile(r"^[^@\s]+@([-a-z0-9]+\.)+[a-z]{2,}$", re.IGNORECASE)

MSG_BLANK = "this must not be blank"
MSG_INVALID_EMAIL = "this is not a valid e-mail address"
MSG_LOGIN_TAKEN = "this login is already in use"
MSG_CONFIRMATION = "this must match confirmation"


def _too_long(limit: int) -> str:
    return f"this must not be longer than {limit} characters"


def _too_short(limit: int) -> str:
    return f"this must be at least {limit} characters long"


# ---------------------------------------------------------------------------
# Per-field rules
# ---------------------------------------------------------------------------


def _check_name(name: str | None) -> list[FieldError]:
    errors = []
    if not name or not name.strip():
        errors.append(FieldError("name", MSG_BLANK))
    if name and len(name) > NAME_MAX:
        errors.append(FieldError("name", _too_long(NAME_MAX)))
    return errors


def _check_email(email: str | None) -> list[FieldError]:
    if not email:
        return []
    errors = []
    if len(email) > EMAIL_MAX:
        errors.append(FieldError("email", _too_long(EMAIL_MAX)))
    # fullmatch so a trailing newline cannot slip past the $ anchor
    if not EMAIL_PATTERN.fullmatch(email):
        errors.append(FieldError("email", MSG_INVALID_EMAIL))
    return errors


def _check_login(user: User, store: UserStore | None) -> list[FieldError]:
    login = user.login
    if not login:
        return []
    if len(login) < LOGIN_MIN:
        return [FieldError("login", _too_short(LOGIN_MIN))]
    if len(login) > LOGIN_MAX:
        return [FieldError("login", _too_long(LOGIN_MAX))]
    if store is not None:
        holder = store.find_by_login(login)
        # The record's own stored row does not count as a clash.
        if holder is not None and (user.id is None or holder.id != user.id):
            return [FieldError("login", MSG_LOGIN_TAKEN)]
    return []


def _check_password(user: User) -> list[FieldError]:
    password = user.password
    if not password:
        return []
    errors = []
    if len(password) < PASSWORD_MIN:
        errors.append(FieldError("password", _too_short(PASSWORD_MIN)))
    if len(password) > PASSWORD_MAX:
        errors.append(FieldError("password", _too_long(PASSWORD_MAX)))
    if user.confirm_password and user.password_confirmation != password:
        errors.append(FieldError("password", MSG_CONFIRMATION))
    return errors


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_user(user: User, store: UserStore | None = None) -> list[FieldError]:
    """Return every validation failure for user, in field order.

    Pass store to include the login uniqueness check. Without it the check
    is skipped, which suits form previews that have no database handy.
    """
    return [
        *_check_name(user.name),
        *_check_email(user.email),
        *_check_login(user, store),
        *_check_password(user),
    ]


def errors_on(errors: list[FieldError], field: str) -> list[str]:
    """Return the messages belonging to one field."""
    return [e.message for e in errors if e.field == field]


def full_messages(errors: list[FieldError]) -> list[str]:
    """Render errors as "<field> <message>" strings for display."""
    return [f"{e.field.replace('_', ' ').capitalize()} {e.message}" for e in errors]
