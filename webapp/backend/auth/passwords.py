"""
Password hashing with argon2.
"""
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Check a password against a stored hash.

    Returns False for a missing hash (OAuth-only accounts) or a hash that
    can't be parsed, instead of raising.
    """
    if not password_hash:
        return False
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHash):
        return False
