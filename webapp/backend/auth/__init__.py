"""
Authentication module for the tutoring platform.

Provides:
- JWT access/refresh/admin token creation and validation
- Redis-backed refresh session cache
- Password hashing
- Google OAuth flow handling
- FastAPI dependencies for route protection
"""

from .jwt_handler import InvalidTokenError, TokenIssuer, TokenPair
from .session_cache import SessionCache, SessionCacheUnavailable
from .dependencies import get_current_account, require_admin

__all__ = [
    "InvalidTokenError",
    "TokenIssuer",
    "TokenPair",
    "SessionCache",
    "SessionCacheUnavailable",
    "get_current_account",
    "require_admin",
]
