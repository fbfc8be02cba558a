"""
FastAPI dependencies for authentication and authorization.
"""

import hmac
import logging
from typing import Any, Dict, Tuple

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from config import Settings
from constants import ADMIN_TOKEN_COOKIE, Role, TokenType
from database import get_db
from errors import UnauthorizedError
from models import Account
from .jwt_handler import InvalidTokenError, TokenIssuer
from .session_cache import SessionCache

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_session_cache(request: Request) -> SessionCache:
    return SessionCache(request.app.state.redis)


def get_access_claims(
    request: Request,
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Dict[str, Any]:
    """
    Verify the Bearer access token on the request.

    Raises 401 if the Authorization header is missing, malformed or the
    token doesn't verify.
    """
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Authorization header is missing or invalid")

    try:
        return issuer.verify(token.strip(), TokenType.ACCESS)
    except InvalidTokenError:
        raise UnauthorizedError("Invalid token")


def get_current_account(
    claims: Dict[str, Any] = Depends(get_access_claims),
    db: Session = Depends(get_db),
) -> Tuple[Account, Dict[str, Any]]:
    """
    Load the account named by a valid access token.

    Usage:
        @router.get("/protected")
        def protected_route(current=Depends(get_current_account)):
            account, claims = current
            ...
    """
    from services.auth_service import get_account_by_id

    try:
        role = Role(claims.get("role"))
    except ValueError:
        raise UnauthorizedError("Invalid token")

    account = get_account_by_id(db, role, claims["sub"])
    if not account:
        raise UnauthorizedError("User not found")
    return account, claims


def require_admin(
    request: Request,
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Require a valid admin_token cookie issued to the configured admin.

    Raises 401 if the cookie is missing, doesn't verify as an admin token,
    or names a username other than ADMIN_USERNAME (e.g. after rotation).
    """
    token = request.cookies.get(ADMIN_TOKEN_COOKIE)
    if not token:
        raise UnauthorizedError("Admin token is missing")

    try:
        claims = issuer.verify(token, TokenType.ADMIN)
    except InvalidTokenError:
        logger.warning("Rejected invalid admin token")
        raise UnauthorizedError("Invalid admin token")

    if not hmac.compare_digest(str(claims["sub"]).encode("utf-8"), settings.admin_username.encode("utf-8")):
        logger.warning("Rejected admin token for unknown admin %s", claims["sub"])
        raise UnauthorizedError("Invalid admin token")
    return claims
