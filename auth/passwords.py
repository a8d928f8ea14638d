"""
auth/passwords.py -- Password hashing and verification.

Argon2id via argon2-cffi. Argon2 is memory-hard, so brute-forcing a leaked
hash costs memory as well as CPU. Each hash() call draws a fresh random salt;
the encoded output ($argon2id$v=19$m=...,t=...,p=...$salt$digest) carries the
salt and cost parameters, so no separate salt column is stored.

Cost parameters come from Settings so tests can run with cheap values.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from core.config import get_settings

_settings = get_settings()

_hasher = PasswordHasher(
    time_cost=_settings.argon2_time_cost,
    memory_cost=_settings.argon2_memory_cost,
    parallelism=_settings.argon2_parallelism,
)


def hash_password(plain: str) -> str:
    """Return the argon2id encoded hash of the plaintext password."""
    return _hasher.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the encoded hash.

    A malformed stored hash is treated as a mismatch rather than an error.
    """
    try:
        return _hasher.verify(hashed, plain)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(hashed: str) -> bool:
    """True when the hash was produced with parameters other than the current ones."""
    return _hasher.check_needs_rehash(hashed)
