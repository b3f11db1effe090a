"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper.
UserStore is the repository; _user_values / _row_to_user are the mappers.
Validation, hashing and token code never touches SQL directly.

This is the storage collaborator for the rest of auth/. It offers exactly
what they need -- lookups by id, login, login-or-email and session token,
plus save and delete -- and does no validation of its own beyond the UNIQUE
constraint on login. Errors from SQLAlchemy (IntegrityError when a duplicate
login races past validation, OperationalError for a broken database)
propagate unchanged; nothing here retries.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Plaintext passwords have no column. The transient fields on User are
  simply not mapped.

  Blank login/email are written as NULL. SQLite treats NULLs as distinct in
  UNIQUE constraints, so any number of users may go without a login.

Role flags: one INTEGER column per Role member, generated from the enum so
adding a role is a one-line change in auth/models.py plus a migration.

DB path: AUTH_DB_URL (default auth/userauth.db).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, or_, text
from sqlalchemy.engine import Engine

from auth.models import Role, User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255)),
    Column("login", String(40), unique=True),  # NULL when the user has no login
    Column("password_digest", String(64)),
    Column("salt", String(40)),
    Column("session_token", String(64), unique=True),
    Column("session_token_expires_at", String(32)),  # ISO 8601 UTC
    Column("locale", String(20)),
    Column("notes", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    *(Column(role.value, Integer, nullable=False, server_default="0") for role in Role),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PersistenceFailure(Exception):
    """Raised by callers of UserStore.save() when it reports that nothing was written.

    save() returns False when the row being updated no longer exists (deleted
    by another request). SQLAlchemy errors are not wrapped in this.
    """


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///:memory:")
        store.save(User(name="Admin", login="admin", roles={"admin": True}))
        user = store.find_by_login("admin")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        if db_url is None:
            db_url = get_settings().auth_db_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # The collaborator contract calls this "load".
    load = get_by_id

    def find_by_login(self, login: str | None) -> User | None:
        """Look up a user by exact login (case-sensitive). Returns None if not found."""
        if not login:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.login == login)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_login_or_email(self, identifier: str | None) -> User | None:
        """Look up a user whose login or email equals identifier.

        If one user's login happens to equal another user's email, the
        older record (lower id) wins.
        """
        if not identifier:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select()
                .where(or_(_users.c.login == identifier, _users.c.email == identifier))
                .order_by(_users.c.id)
                .limit(1)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_session_token(self, token: str | None) -> User | None:
        """Look up the user currently holding a remember-me token.

        Expiry is not checked here; see auth/tokens.resume_session().
        """
        if not token:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.session_token == token)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by name."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.name, _users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, user: User) -> bool:
        """Insert or update the persisted fields of user.

        A user with id None is inserted and receives its id and created_at.
        Otherwise the row with that id is updated. updated_at is stamped in
        both cases. Returns False only when updating an id that no longer
        exists.

        Raises sqlalchemy.exc.IntegrityError if the login is already taken.
        """
        now = _now_iso()
        values = _user_values(user)
        values["updated_at"] = now
        with self.engine.connect() as conn:
            if user.id is None:
                values["created_at"] = now
                result = conn.execute(_users.insert().values(**values))
                conn.commit()
                user.id = result.inserted_primary_key[0]
                user.created_at = now
                user.updated_at = now
                return True
            result = conn.execute(_users.update().where(_users.c.id == user.id).values(**values))
            conn.commit()
        if result.rowcount > 0:
            user.updated_at = now
            return True
        return False

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _user_values(user: User) -> dict:
    expires = user.session_token_expires_at
    values = {
        "name": user.name,
        "email": user.email or None,
        "login": user.login or None,
        "password_digest": user.password_digest,
        "salt": user.salt,
        "session_token": user.session_token or None,
        "session_token_expires_at": expires.isoformat() if expires is not None else None,
        "locale": user.locale,
        "notes": user.notes,
    }
    for role in Role:
        values[role.value] = 1 if user.roles.get(role.value) else 0
    return values


def _row_to_user(row) -> User:
    expires = row.session_token_expires_at
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        login=row.login,
        password_digest=row.password_digest,
        salt=row.salt,
        session_token=row.session_token,
        session_token_expires_at=datetime.fromisoformat(expires) if expires else None,
        roles={role.value: bool(getattr(row, role.value)) for role in Role},
        locale=row.locale,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
