"""
HTTP error types raised by the auth services and routers.

Each one is an HTTPException, so FastAPI renders it as {"detail": ...}
with the matching status code.
"""
from typing import Optional

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Unknown account or teacher."""

    def __init__(self, detail: str = "User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UnauthorizedError(HTTPException):
    """Bad credentials, invalid/expired/missing token, or revoked session."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """Duplicate registration, bad verification link, failed OAuth exchange."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class RateLimitedError(HTTPException):
    def __init__(self, detail: str, retry_after: Optional[int] = None):
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers=headers,
        )
