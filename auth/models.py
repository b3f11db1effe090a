"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Validation lives in
auth/validation.py, credential work in auth/passwords.py, persistence in
auth/store.py -- dataclasses own domain shape; the other modules do the work.

Layer rule: no imports from other auth/ modules or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """The fixed role set. Each member is a boolean flag on a User."""

    admin = "admin"
    designer = "designer"


@dataclass
class User:
    """A person who can log in.

    password and password_confirmation are transient plaintext inputs. They
    are never written to storage; auth/records.py turns password into
    password_digest on save and clears both afterwards. An empty password on
    an already-saved record means "keep the current digest".

    salt is None until the first save encrypts a password, and is never
    regenerated afterwards.

    session_token and session_token_expires_at are set together by
    auth/tokens.remember() and cleared together by forget().

    roles maps Role values to booleans. A missing entry means False.

    id is None before the record is written to the database.
    """

    name: str = ""
    email: str | None = None
    login: str | None = None
    password: str = ""  # transient
    password_confirmation: str | None = None  # transient
    confirm_password: bool = True  # transient; False skips the confirmation rule
    password_digest: str | None = None
    salt: str | None = None
    session_token: str | None = None
    session_token_expires_at: datetime | None = None  # tz-aware UTC
    roles: dict[str, bool] = field(default_factory=dict)
    locale: str | None = None
    notes: str | None = None
    id: int | None = None
    created_at: str | None = None  # ISO 8601, set by store on insert
    updated_at: str | None = None  # ISO 8601, set by store on every save


@dataclass(frozen=True)
class FieldError:
    """One validation failure: the field it belongs to and a display message."""

    field: str
    message: str
