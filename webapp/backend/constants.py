"""
Shared constants for the backend.

Centralizes account roles, token lifetimes and cookie names used across
the auth modules and routers.
"""
from enum import Enum


class Role(str, Enum):
    """
    Account roles that can sign in with a password.

    Using str + Enum allows direct comparison with string values and JSON serialization.
    """
    TEACHER = 'teacher'
    PARENT = 'parent'


class TokenType(str, Enum):
    """Value of the "type" claim, so one kind of token can't stand in for another."""
    ACCESS = 'access'
    REFRESH = 'refresh'
    ADMIN = 'admin'


# Token lifetimes
ACCESS_TOKEN_EXPIRE_MINUTES = 15
REFRESH_TOKEN_EXPIRE_DAYS = 7
ADMIN_TOKEN_EXPIRE_DAYS = 365

REFRESH_TOKEN_TTL_SECONDS = REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600
ADMIN_TOKEN_TTL_SECONDS = ADMIN_TOKEN_EXPIRE_DAYS * 24 * 3600

# Email verification links are valid for one hour
EMAIL_VERIFICATION_EXPIRE_HOURS = 1

# Cookie names
REFRESH_TOKEN_COOKIE = 'refresh_token'
ACCESS_TOKEN_COOKIE = 'access_token'
ADMIN_TOKEN_COOKIE = 'admin_token'

# Redis key prefix for the live refresh token of an account
REFRESH_TOKEN_KEY_PREFIX = 'refresh_token:'

PASSWORD_MIN_LENGTH = 6
