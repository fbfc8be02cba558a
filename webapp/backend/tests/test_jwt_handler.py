"""
Tests for JWT token issuing and verification.

Tests cover:
- Access/refresh pair issuance and shared claims
- Token lifetimes (15 minutes, 7 days, 365 days for admin)
- Uniform rejection of expired, forged, malformed and wrong-type tokens
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.jwt_handler import ALGORITHM, InvalidTokenError, TokenIssuer
from constants import Role, TokenType

SECRET = "unit-test-secret-key-0123456789abcdef"


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(SECRET)


def _time_remaining(token: str) -> int:
    claims = jwt.get_unverified_claims(token)
    return int(claims["exp"] - datetime.now(timezone.utc).timestamp())


class TestIssueTokens:
    """Tests for access/refresh pair creation."""

    def test_pair_carries_identical_account_claims(self, token_issuer):
        """Access and refresh tokens should share sub, role and email_verified."""
        pair = token_issuer.issue_tokens("abc-123", Role.PARENT, False)

        access = token_issuer.verify(pair.access_token, TokenType.ACCESS)
        refresh = token_issuer.verify(pair.refresh_token, TokenType.REFRESH)

        for claims in (access, refresh):
            assert claims["sub"] == "abc-123"
            assert claims["role"] == "parent"
            assert claims["email_verified"] is False

    def test_access_token_expires_in_15_minutes(self, token_issuer):
        pair = token_issuer.issue_tokens("1", Role.TEACHER, True)
        remaining = _time_remaining(pair.access_token)
        # Allow 60 seconds tolerance for test execution time
        assert 15 * 60 - 60 < remaining <= 15 * 60

    def test_refresh_token_expires_in_7_days(self, token_issuer):
        pair = token_issuer.issue_tokens("1", Role.TEACHER, True)
        remaining = _time_remaining(pair.refresh_token)
        assert 7 * 86400 - 60 < remaining <= 7 * 86400

    def test_admin_token_expires_in_365_days(self, token_issuer):
        token = token_issuer.issue_admin_token("admin")
        claims = token_issuer.verify(token, TokenType.ADMIN)
        assert claims["sub"] == "admin"
        assert 365 * 86400 - 60 < _time_remaining(token) <= 365 * 86400

    def test_issue_access_token_replaces_timing_claims(self, token_issuer):
        """A new access token built from refresh claims should get fresh type and expiry."""
        pair = token_issuer.issue_tokens("42", Role.PARENT, True)
        refresh_claims = token_issuer.verify(pair.refresh_token, TokenType.REFRESH)

        new_access = token_issuer.issue_access_token(refresh_claims)
        claims = token_issuer.verify(new_access, TokenType.ACCESS)

        assert claims["sub"] == "42"
        assert claims["email_verified"] is True
        assert _time_remaining(new_access) <= 15 * 60


class TestVerify:
    """Tests for token verification."""

    def test_expired_token_rejected(self, token_issuer):
        token = token_issuer.create_token({"sub": "1"}, TokenType.ACCESS, timedelta(minutes=-1))
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(token, TokenType.ACCESS)

    def test_token_signed_with_other_secret_rejected(self, token_issuer):
        other = TokenIssuer("another-secret-key-0123456789abcdef")
        token = other.issue_tokens("1", Role.PARENT, False).access_token
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(token, TokenType.ACCESS)

    def test_tampered_payload_rejected(self, token_issuer):
        token = token_issuer.issue_tokens("1", Role.PARENT, False).access_token
        forged_claims = jwt.get_unverified_claims(token)
        forged_claims["sub"] = "2"
        header, _, signature = token.split(".")
        forged_body = jwt.encode(forged_claims, "wrong-key-wrong-key-wrong-key-wrong", algorithm=ALGORITHM).split(".")[1]
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(f"{header}.{forged_body}.{signature}", TokenType.ACCESS)

    @pytest.mark.parametrize("token", ["invalid.token.here", "not-even-close", ""])
    def test_malformed_token_rejected(self, token_issuer, token):
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(token, TokenType.ACCESS)

    def test_refresh_token_not_accepted_as_access(self, token_issuer):
        pair = token_issuer.issue_tokens("1", Role.PARENT, False)
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(pair.refresh_token, TokenType.ACCESS)

    def test_access_token_not_accepted_as_admin(self, token_issuer):
        pair = token_issuer.issue_tokens("1", Role.TEACHER, True)
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(pair.access_token, TokenType.ADMIN)

    def test_expired_and_forged_errors_look_the_same(self, token_issuer):
        """Callers should not be able to tell an expired token from a forged one."""
        expired = token_issuer.create_token({"sub": "1"}, TokenType.ACCESS, timedelta(hours=-1))

        with pytest.raises(InvalidTokenError) as expired_exc:
            token_issuer.verify(expired, TokenType.ACCESS)
        with pytest.raises(InvalidTokenError) as forged_exc:
            token_issuer.verify("invalid.token.here", TokenType.ACCESS)

        assert str(expired_exc.value) == str(forged_exc.value) == "Invalid token"
