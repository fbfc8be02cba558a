"""
Redis-backed store of the live refresh token for each account.

Deleting an entry revokes the session immediately, even though the refresh
token itself still verifies until its embedded expiry.
"""
import logging
from typing import Optional

import redis

from constants import REFRESH_TOKEN_KEY_PREFIX

logger = logging.getLogger(__name__)


class SessionCacheUnavailable(Exception):
    """Raised when Redis can't be reached; callers treat this as unauthorized."""


class SessionCache:
    """
    Maps account id -> current refresh token.

    One key per account, so storing a new token replaces the previous one.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    @staticmethod
    def _key(account_id: str) -> str:
        return f"{REFRESH_TOKEN_KEY_PREFIX}{account_id}"

    def store(self, account_id: str, refresh_token: str, ttl_seconds: int) -> None:
        try:
            self._client.set(self._key(account_id), refresh_token, ex=ttl_seconds)
        except redis.RedisError as e:
            logger.error("Session cache write failed for %s: %s", account_id, e)
            raise SessionCacheUnavailable() from e

    def get(self, account_id: str) -> Optional[str]:
        try:
            value = self._client.get(self._key(account_id))
        except redis.RedisError as e:
            logger.error("Session cache read failed for %s: %s", account_id, e)
            raise SessionCacheUnavailable() from e

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def delete(self, account_id: str) -> None:
        """Remove the session. Deleting an absent key is a no-op."""
        try:
            self._client.delete(self._key(account_id))
        except redis.RedisError as e:
            logger.error("Session cache delete failed for %s: %s", account_id, e)
            raise SessionCacheUnavailable() from e
