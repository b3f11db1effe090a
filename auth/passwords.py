"""
auth/passwords.py -- Salt generation, password digests, and verification.

Security design decisions:
  Digest: bcrypt-pbkdf (bcrypt.kdf) over salt + plaintext, keyed with the
       per-user salt, 32 output bytes, hex encoded. Unlike bcrypt.hashpw the
       KDF is deterministic for a given (salt, plaintext), which is what lets
       the salt live in its own column and be reused across password changes.
       The plaintext is prefixed with the salt so the KDF input is never empty
       (bcrypt.kdf rejects empty passwords, and a blank first password is
       legal).

  Salt: secrets.token_hex(20) -- 160 bits from the OS CSPRNG. Generated once
       per user by auth/records.encrypt_password(), never regenerated.

  Verification: recompute and compare with hmac.compare_digest so comparison
       time does not depend on how many leading characters match.

  _DUMMY_SALT / _DUMMY_DIGEST: computed once at module load so failed lookups
       in authenticate() can run the same KDF work as a real check.

Layer rule: may import from core/ and auth.models only.
"""

from __future__ import annotations

import hmac
import secrets

import bcrypt

from core.config import get_settings

_DIGEST_BYTES = 32
_SALT_BYTES = 20


def generate_salt() -> str:
    """Return a fresh random salt as 40 hex characters."""
    return secrets.token_hex(_SALT_BYTES)


def hash_password(salt: str, plaintext: str) -> str:
    """Return the hex digest of salt + plaintext.

    Pure and deterministic: the same (salt, plaintext) pair always gives the
    same 64-character string under a fixed round count.
    """
    if not salt:
        raise ValueError("salt must not be empty")
    derived = bcrypt.kdf(
        password=(salt + plaintext).encode("utf-8"),
        salt=salt.encode("utf-8"),
        desired_key_bytes=_DIGEST_BYTES,
        rounds=get_settings().password_kdf_rounds,
        # The round count is a deployment decision made in Settings.
        ignore_few_rounds=True,
    )
    return derived.hex()


def verify_password(salt: str | None, plaintext: str, digest: str | None) -> bool:
    """Return True if plaintext hashes to digest under salt.

    Records with no salt or no digest never verify.
    """
    if not salt or not digest:
        return False
    candidate = hash_password(salt, plaintext)
    return hmac.compare_digest(candidate.encode("ascii"), digest.encode("utf-8"))


# Timing equalization pair. See authenticate() in auth/authenticator.py.
_DUMMY_SALT: str = generate_salt()
_DUMMY_DIGEST: str = hash_password(_DUMMY_SALT, "userauth_timing_dummy")


def burn_verification() -> None:
    """Run one full verification against the dummy pair and discard the result.

    Called on paths that reject a login before a real digest is available,
    so they cost the same as a wrong-password rejection.
    """
    verify_password(_DUMMY_SALT, "userauth_timing_dummy_miss", _DUMMY_DIGEST)
