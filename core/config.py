"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for userauth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_timeout_seconds -> SESSION_TIMEOUT_SECONDS). Type coercion
      and validation are built in.

  @field_validator: rejects non-positive durations and round counts at load
      time, so a bad .env fails on startup instead of issuing tokens that are
      already expired.

Layer rule: core/ is the kernel. This module may not import from auth/.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("userauth.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'userauth.db'}"

# Two weeks.
_DEFAULT_SESSION_TIMEOUT = 14 * 24 * 3600


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    auth_db_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Credentials and sessions
    # ------------------------------------------------------------------

    # Lifetime of a remember-me token, in seconds.
    session_timeout_seconds: int = _DEFAULT_SESSION_TIMEOUT
    # bcrypt-pbkdf rounds for password digests. Changing this invalidates
    # every stored digest, so treat it as fixed per deployment.
    password_kdf_rounds: int = 64

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("session_timeout_seconds", "password_kdf_rounds")
    @classmethod
    def must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(seconds=self.session_timeout_seconds)


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    if settings.debug:
        logger.warning("DEBUG is enabled -- do not run this configuration in production.")
    return settings
