"""
Google OAuth flow handling.
"""

from typing import Optional
from urllib.parse import urlencode

import httpx

from config import Settings

# Google OAuth endpoints
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


class OAuthError(Exception):
    """Raised when Google rejects the code exchange or the profile request."""


def get_google_auth_url(settings: Settings, state: Optional[str] = None) -> str:
    """
    Generate the Google OAuth authorization URL.

    Args:
        settings: App settings with the client id and callback URL
        state: Optional state parameter for CSRF protection

    Returns:
        Full Google OAuth consent URL
    """
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "online",
        "prompt": "select_account",
    }

    if state:
        params["state"] = state

    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code_for_tokens(settings: Settings, code: str) -> dict:
    """
    Exchange authorization code for Google tokens.

    Args:
        settings: App settings with the client credentials
        code: The authorization code from Google callback

    Returns:
        Token response dict containing access_token, id_token, etc.

    Raises:
        OAuthError if token exchange fails
    """
    async with httpx.AsyncClient() as client:
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": settings.google_redirect_uri,
            },
        )

        if response.status_code != 200:
            raise OAuthError(f"Token exchange failed: {response.text}")

        tokens = response.json()
        if not tokens.get("access_token"):
            raise OAuthError("Token exchange returned no access token")
        return tokens


async def get_user_info(access_token: str) -> dict:
    """
    Get user info from Google using access token.

    Args:
        access_token: Google access token

    Returns:
        User info dict with email, given_name, family_name, sub, etc.
    """
    async with httpx.AsyncClient() as client:
        response = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )

        if response.status_code != 200:
            raise OAuthError(f"Failed to get user info: {response.text}")

        return response.json()


async def exchange_code_for_user_info(settings: Settings, code: str) -> dict:
    """
    Exchange authorization code for user info in one step.

    Args:
        settings: App settings
        code: The authorization code from Google callback

    Returns:
        User info dict with email, given_name, family_name, sub (Google user ID)
    """
    tokens = await exchange_code_for_tokens(settings, code)
    return await get_user_info(tokens["access_token"])
