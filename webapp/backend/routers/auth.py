"""
Authentication router: password login, sessions, parent registration,
email verification, Google sign-in and the admin tier.
"""

import logging
from urllib.parse import urlencode
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from auth.dependencies import (
    get_current_account,
    get_session_cache,
    get_settings,
    get_token_issuer,
    require_admin,
)
from auth.jwt_handler import TokenIssuer
from auth.oauth import get_google_auth_url, exchange_code_for_user_info
from auth.session_cache import SessionCache, SessionCacheUnavailable
from config import Settings
from constants import (
    ACCESS_TOKEN_COOKIE,
    ADMIN_TOKEN_COOKIE,
    ADMIN_TOKEN_TTL_SECONDS,
    REFRESH_TOKEN_COOKIE,
    REFRESH_TOKEN_TTL_SECONDS,
    Role,
)
from database import get_db
from errors import BadRequestError, UnauthorizedError
from models import Account, Parent
from schemas import (
    AccessTokenResponse,
    AccountResponse,
    AdminLoginRequest,
    AuthResponse,
    CurrentAccountResponse,
    LoginRequest,
    MessageResponse,
    ParentRegister,
    ParentResponse,
    TeacherCreate,
    TeacherResponse,
)
from services import auth_service
from services.email_service import dispatch_verification_email
from utils.rate_limiter import rate_limit

router = APIRouter()
logger = logging.getLogger(__name__)

GOOGLE_AUTH_FAILED = "Google authentication failed"


def _account_response(account: Account) -> AccountResponse:
    if isinstance(account, Parent):
        return ParentResponse.model_validate(account)
    return TeacherResponse.model_validate(account)


def _set_token_cookie(response: Response, settings: Settings, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        max_age=max_age,
    )


def _set_refresh_cookie(response: Response, settings: Settings, refresh_token: str) -> None:
    _set_token_cookie(response, settings, REFRESH_TOKEN_COOKIE, refresh_token, REFRESH_TOKEN_TTL_SECONDS)


def _clear_cookie(response: Response, settings: Settings, key: str) -> None:
    response.delete_cookie(
        key=key,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


@router.post("/auth/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    role: Role = Query(..., description="Role of the user attempting to log in"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    cache: SessionCache = Depends(get_session_cache),
):
    """
    Log in a teacher or parent with email and password.

    Returns the access token in the body and sets the refresh token as an
    HTTP-only cookie.
    """
    account = auth_service.authenticate(db, role, body.email, body.password)
    tokens = auth_service.start_session(issuer, cache, account)
    _set_refresh_cookie(response, settings, tokens.refresh_token)

    logger.info("Login successful for %s %s", role.value, account.id)
    return AuthResponse(user=_account_response(account), access_token=tokens.access_token)


@router.post("/auth/refresh", response_model=AccessTokenResponse)
def refresh_token(
    request: Request,
    issuer: TokenIssuer = Depends(get_token_issuer),
    cache: SessionCache = Depends(get_session_cache),
):
    """
    Issue a new access token from the refresh token cookie.

    Fails with 401 when the session has been revoked, even if the refresh
    token itself is still valid.
    """
    token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    access_token = auth_service.refresh_access_token(issuer, cache, token)
    return AccessTokenResponse(access_token=access_token)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    cache: SessionCache = Depends(get_session_cache),
):
    """
    Log out by revoking the refresh session and clearing the auth cookies.
    Safe to call repeatedly.
    """
    auth_service.end_session(issuer, cache, request.cookies.get(REFRESH_TOKEN_COOKIE))

    _clear_cookie(response, settings, REFRESH_TOKEN_COOKIE)
    _clear_cookie(response, settings, ACCESS_TOKEN_COOKIE)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/auth/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: ParentRegister,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    cache: SessionCache = Depends(get_session_cache),
):
    """
    Register a parent account and email a verification link.

    The email is sent after the response; a delivery failure is logged and
    does not undo the registration.
    """
    parent = auth_service.register_parent(db, body)
    verification = auth_service.create_email_verification(db, parent)
    background_tasks.add_task(
        dispatch_verification_email,
        settings,
        to_email=parent.email,
        name=parent.first_name,
        verification_id=verification.id,
    )

    try:
        tokens = auth_service.start_session(issuer, cache, parent)
    except SessionCacheUnavailable:
        # Account and link are committed; the email still goes out with this response
        logger.error("Registered parent %s without a session: session store unavailable", parent.id)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Session store unavailable"},
        )
    _set_refresh_cookie(response, settings, tokens.refresh_token)

    return AuthResponse(user=_account_response(parent), access_token=tokens.access_token)


@router.post("/auth/verify-email", response_model=AuthResponse)
def verify_email(
    response: Response,
    verification_id: str = Query(..., alias="verificationID", min_length=1),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    cache: SessionCache = Depends(get_session_cache),
):
    """
    Confirm a parent's email from the link sent at registration.

    Each link works once. Issues fresh tokens carrying the verified state.
    """
    parent = auth_service.verify_email(db, verification_id)
    tokens = auth_service.start_session(issuer, cache, parent)
    _set_refresh_cookie(response, settings, tokens.refresh_token)
    return AuthResponse(user=_account_response(parent), access_token=tokens.access_token)


@router.get("/auth/google/login")
async def google_login(settings: Settings = Depends(get_settings)):
    """
    Redirect to Google OAuth consent screen.

    The user will be redirected to Google to authenticate,
    then back to /auth/google/callback with an authorization code.
    """
    return RedirectResponse(url=get_google_auth_url(settings))


@router.get("/auth/google/callback")
async def google_callback(
    code: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    cache: SessionCache = Depends(get_session_cache),
):
    """
    Handle Google OAuth callback.

    Exchanges the authorization code for the Google profile, finds or
    creates the matching parent, and redirects to the frontend with the
    access token in the URL. The refresh token is only set as a cookie.
    """
    if error or not code:
        logger.warning("Google callback without code (error=%s)", error)
        raise BadRequestError(GOOGLE_AUTH_FAILED)

    try:
        user_info = await exchange_code_for_user_info(settings, code)
        parent, created = auth_service.resolve_google_account(db, user_info)
        tokens = auth_service.start_session(issuer, cache, parent)
    except (HTTPException, SessionCacheUnavailable):
        raise
    except Exception as e:
        logger.exception("OAuth callback error: %s", e)
        raise BadRequestError(GOOGLE_AUTH_FAILED)

    query = urlencode({"access_token": tokens.access_token})
    response = RedirectResponse(
        url=f"{settings.frontend_url}/auth/callback?{query}",
        status_code=status.HTTP_302_FOUND,
    )
    _set_refresh_cookie(response, settings, tokens.refresh_token)

    logger.info("Google sign-in successful for parent %s (new=%s)", parent.id, created)
    return response


@router.post(
    "/auth/admin/login",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("admin_login"))],
)
def admin_login(
    body: AdminLoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Log in to the admin tier with the configured credentials.

    Sets a long-lived admin_token cookie. There is no refresh flow.
    """
    if not auth_service.check_admin_credentials(
        body.username, body.password, settings.admin_username, settings.admin_password
    ):
        logger.warning("Failed admin login attempt for username %s", body.username)
        raise UnauthorizedError("Invalid credentials")

    _set_token_cookie(
        response,
        settings,
        ADMIN_TOKEN_COOKIE,
        issuer.issue_admin_token(body.username),
        ADMIN_TOKEN_TTL_SECONDS,
    )
    logger.info("Admin login successful")
    return MessageResponse(message="Admin logged in successfully")


@router.post(
    "/auth/create-teacher",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_teacher(
    body: TeacherCreate,
    admin: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a teacher account. Admin only."""
    teacher = auth_service.create_teacher(db, body)
    return TeacherResponse.model_validate(teacher)


@router.get("/auth/me", response_model=CurrentAccountResponse)
def get_current_account_info(
    current: Tuple[Account, Dict[str, Any]] = Depends(get_current_account),
):
    """
    Get the account behind the Bearer access token.
    """
    account, claims = current
    return CurrentAccountResponse(
        email_verified=bool(claims.get("email_verified")),
        user=_account_response(account),
    )
