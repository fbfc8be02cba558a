"""
JWT token creation and validation using python-jose.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from constants import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ADMIN_TOKEN_EXPIRE_DAYS,
    REFRESH_TOKEN_EXPIRE_DAYS,
    Role,
    TokenType,
)

ALGORITHM = "HS256"

# Claims that describe the token itself rather than the account
_TIMING_CLAIMS = ("exp", "iat", "type")


class InvalidTokenError(Exception):
    """
    Raised for any token that fails verification.

    Bad signature, expiry, malformed input and wrong token type all surface
    as this one error so callers can't tell them apart.
    """

    def __init__(self):
        super().__init__("Invalid token")


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """
    Signs and verifies account and admin tokens with a shared secret.

    Access and refresh tokens carry identical account claims
    (sub, role, email_verified) and differ only in type and expiry.
    """

    def __init__(
        self,
        secret_key: str,
        access_expires: timedelta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_expires: timedelta = timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        admin_expires: timedelta = timedelta(days=ADMIN_TOKEN_EXPIRE_DAYS),
    ):
        self._secret_key = secret_key
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires
        self.admin_expires = admin_expires

    def create_token(self, data: dict, token_type: TokenType, expires_delta: timedelta) -> str:
        """
        Create a signed JWT.

        Args:
            data: Dictionary containing token payload (sub, role, etc.)
            token_type: Stored in the "type" claim
            expires_delta: Lifetime of the token; negative values are allowed (tests)

        Returns:
            Encoded JWT token string
        """
        now = datetime.now(timezone.utc)
        to_encode = data.copy()
        to_encode.update({
            "type": token_type.value,
            "exp": now + expires_delta,
            "iat": now,
        })
        return jwt.encode(to_encode, self._secret_key, algorithm=ALGORITHM)

    @staticmethod
    def account_claims(account_id: str, role: Role, email_verified: bool) -> Dict[str, Any]:
        # sub must be a string (RFC 7519)
        return {
            "sub": str(account_id),
            "role": Role(role).value,
            "email_verified": bool(email_verified),
        }

    def issue_access_token(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Issue an access token for already-built account claims."""
        payload = {k: v for k, v in claims.items() if k not in _TIMING_CLAIMS}
        return self.create_token(payload, TokenType.ACCESS, expires_delta or self.access_expires)

    def issue_tokens(self, account_id: str, role: Role, email_verified: bool) -> TokenPair:
        """Issue an access token and a refresh token with identical claims."""
        claims = self.account_claims(account_id, role, email_verified)
        return TokenPair(
            access_token=self.create_token(claims, TokenType.ACCESS, self.access_expires),
            refresh_token=self.create_token(claims, TokenType.REFRESH, self.refresh_expires),
        )

    def issue_admin_token(self, username: str) -> str:
        return self.create_token({"sub": username, "role": "admin"}, TokenType.ADMIN, self.admin_expires)

    def verify(self, token: str, expected_type: TokenType) -> Dict[str, Any]:
        """
        Verify and decode a token.

        Args:
            token: The JWT token string to verify
            expected_type: The token type the caller accepts

        Returns:
            Decoded payload dict

        Raises:
            InvalidTokenError if the token is invalid, expired or of another type
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except JWTError:
            raise InvalidTokenError()

        if payload.get("type") != expected_type.value or not payload.get("sub"):
            raise InvalidTokenError()
        return payload
