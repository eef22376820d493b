"""
Hashing for tenant database credentials.

Secrets are stored as Argon2id hashes and only ever compared through
:func:`verify_secret`.
"""
from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import Type

_argon2 = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)


def hash_secret(secret: str) -> str:
    return _argon2.hash(secret)


def is_hashed(value: str) -> bool:
    return isinstance(value, str) and value.startswith("$argon2id$")


def verify_secret(secret: str, encoded_hash: str) -> bool:
    if not secret or not encoded_hash:
        return False
    try:
        return _argon2.verify(encoded_hash, secret)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
