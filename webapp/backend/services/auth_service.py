"""
Account authentication and session operations.

Routers call these with a DB session, the token issuer and the session
cache; every function raises one of the errors in errors.py on failure.
"""
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.jwt_handler import InvalidTokenError, TokenIssuer, TokenPair
from auth.passwords import hash_password, verify_password
from auth.session_cache import SessionCache, SessionCacheUnavailable
from constants import EMAIL_VERIFICATION_EXPIRE_HOURS, REFRESH_TOKEN_TTL_SECONDS, Role, TokenType
from errors import BadRequestError, NotFoundError, UnauthorizedError
from models import (
    ACCOUNT_MODELS,
    Account,
    EmailVerification,
    Parent,
    Teacher,
    account_email_verified,
    account_role,
)
from schemas import ParentRegister, TeacherCreate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite round-trips tz-aware datetimes as naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# ============================================
# Lookup & sessions
# ============================================

def find_account(db: Session, role: Role, email: str) -> Optional[Account]:
    """Look up an account in the table for the given role."""
    model = ACCOUNT_MODELS[Role(role)]
    return db.query(model).filter(model.email == _normalize_email(email)).first()


def get_account_by_id(db: Session, role: Role, account_id: str) -> Optional[Account]:
    model = ACCOUNT_MODELS[Role(role)]
    return db.query(model).filter(model.id == account_id).first()


def start_session(issuer: TokenIssuer, cache: SessionCache, account: Account) -> TokenPair:
    """
    Issue a token pair for the account and make its refresh token the live one.

    Any refresh token issued earlier for the same account stops being accepted.
    """
    tokens = issuer.issue_tokens(account.id, account_role(account), account_email_verified(account))
    cache.store(account.id, tokens.refresh_token, REFRESH_TOKEN_TTL_SECONDS)
    return tokens


def authenticate(db: Session, role: Role, email: str, password: str) -> Account:
    """
    Verify credentials for the given role.

    Raises:
        NotFoundError if no account of that role has the email
        UnauthorizedError if the password doesn't match
    """
    account = find_account(db, role, email)
    if not account:
        logger.info("Login failed: no %s account for %s", Role(role).value, email)
        raise NotFoundError("User not found")

    if not verify_password(password, account.password_hash):
        logger.info("Login failed: bad credentials for %s account %s", Role(role).value, account.id)
        raise UnauthorizedError("Invalid credentials")

    return account


def refresh_access_token(issuer: TokenIssuer, cache: SessionCache, refresh_token: Optional[str]) -> str:
    """
    Issue a new access token from a refresh token whose session is still live.

    The refresh token itself is not rotated.
    """
    if not refresh_token:
        raise UnauthorizedError("Refresh token is missing")

    try:
        claims = issuer.verify(refresh_token, TokenType.REFRESH)
    except InvalidTokenError:
        raise UnauthorizedError("Invalid refresh token")

    try:
        stored = cache.get(claims["sub"])
    except SessionCacheUnavailable:
        raise UnauthorizedError("Session store unavailable")

    if not stored:
        raise UnauthorizedError("Refresh token not found")
    if not hmac.compare_digest(stored, refresh_token):
        raise UnauthorizedError("Refresh token has been superseded")

    return issuer.issue_access_token(claims)


def end_session(issuer: TokenIssuer, cache: SessionCache, refresh_token: Optional[str]) -> None:
    """
    Revoke the session named by the refresh token, if any.

    A missing or invalid token means there is nothing to revoke. A superseded
    token leaves the account's newer session in place.
    """
    if not refresh_token:
        return

    try:
        claims = issuer.verify(refresh_token, TokenType.REFRESH)
    except InvalidTokenError:
        return

    try:
        stored = cache.get(claims["sub"])
        if not stored or not hmac.compare_digest(stored, refresh_token):
            logger.info("Logout with a stale refresh token for %s %s", claims.get("role"), claims["sub"])
            return
        cache.delete(claims["sub"])
    except SessionCacheUnavailable:
        raise UnauthorizedError("Session store unavailable")
    logger.info("Session ended for %s %s", claims.get("role"), claims["sub"])


# ============================================
# Registration & verification
# ============================================

def create_email_verification(db: Session, parent: Parent, now: Optional[datetime] = None) -> EmailVerification:
    now = now or _utcnow()
    verification = EmailVerification(
        parent_id=parent.id,
        expires_at=now + timedelta(hours=EMAIL_VERIFICATION_EXPIRE_HOURS),
    )
    db.add(verification)
    db.commit()
    db.refresh(verification)
    return verification


def register_parent(db: Session, data: ParentRegister) -> Parent:
    """
    Create a password-based parent account.

    Raises:
        BadRequestError if the email is already registered
    """
    email = _normalize_email(data.email)
    if find_account(db, Role.PARENT, email):
        raise BadRequestError("Email already registered")

    parent = Parent(
        email=email,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        password_hash=hash_password(data.password),
        email_verified=False,
    )
    db.add(parent)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise BadRequestError("Email already registered")
    db.refresh(parent)

    logger.info("Registered parent %s", parent.id)
    return parent


def verify_email(db: Session, verification_id: str, now: Optional[datetime] = None) -> Parent:
    """
    Consume a verification link and mark its parent as verified.

    Raises:
        BadRequestError if the id is unknown or the link has expired
    """
    now = now or _utcnow()
    verification = (
        db.query(EmailVerification)
        .join(Parent, EmailVerification.parent_id == Parent.id)
        .filter(EmailVerification.id == verification_id)
        .first()
    )
    if not verification:
        raise BadRequestError("Invalid verification ID")

    if _as_utc(verification.expires_at) < now:
        db.delete(verification)
        db.commit()
        raise BadRequestError("Verification link has expired")

    parent = verification.parent
    db.query(Parent).filter(Parent.id == parent.id).update(
        {Parent.email_verified: True}, synchronize_session="fetch"
    )
    db.delete(verification)
    db.commit()
    db.refresh(parent)

    logger.info("Email verified for parent %s", parent.id)
    return parent


def delete_expired_verifications(db: Session, now: Optional[datetime] = None) -> int:
    """Delete verification links that expired before `now`. Returns the number removed."""
    now = now or _utcnow()
    deleted = (
        db.query(EmailVerification)
        .filter(EmailVerification.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


# ============================================
# Google sign-in
# ============================================

def resolve_google_account(db: Session, profile: dict) -> Tuple[Parent, bool]:
    """
    Find or create the parent for a Google profile.

    An existing parent with the same email is linked to the Google account
    and marked verified. Otherwise a new, password-less parent is created.

    Returns:
        (parent, created)

    Raises:
        BadRequestError if the profile has no email or subject id
    """
    email = profile.get("email")
    google_id = profile.get("sub")
    if not email or not google_id:
        raise BadRequestError("Google authentication failed")

    email = _normalize_email(email)
    parent = db.query(Parent).filter(Parent.email == email).first()
    if parent:
        if not parent.google_id:
            parent.google_id = str(google_id)
            parent.email_verified = True
            db.commit()
            db.refresh(parent)
            logger.info("Linked Google account to parent %s", parent.id)
        return parent, False

    parent = Parent(
        email=email,
        first_name=profile.get("given_name") or email.split("@")[0],
        last_name=profile.get("family_name") or "",
        password_hash=None,
        email_verified=True,
        google_id=str(google_id),
    )
    db.add(parent)
    db.commit()
    db.refresh(parent)
    logger.info("Created parent %s from Google sign-in", parent.id)
    return parent, True


# ============================================
# Admin
# ============================================

def check_admin_credentials(username: str, password: str, expected_username: str, expected_password: str) -> bool:
    # Both comparisons always run
    username_ok = hmac.compare_digest(username.encode("utf-8"), expected_username.encode("utf-8"))
    password_ok = hmac.compare_digest(password.encode("utf-8"), expected_password.encode("utf-8"))
    return username_ok and password_ok


def create_teacher(db: Session, data: TeacherCreate) -> Teacher:
    """
    Provision a teacher account.

    Raises:
        BadRequestError if a teacher with the email already exists
    """
    email = _normalize_email(data.email)
    if find_account(db, Role.TEACHER, email):
        raise BadRequestError("Teacher with this email already exists")

    teacher = Teacher(
        email=email,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        bio=data.bio,
        specializations=data.specializations,
        password_hash=hash_password(data.password),
    )
    db.add(teacher)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequestError("Teacher with this email already exists")
    db.refresh(teacher)

    logger.info("Created teacher %s", teacher.id)
    return teacher
