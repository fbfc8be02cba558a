"""Tests for the Redis-backed refresh session cache."""
from unittest.mock import MagicMock

import fakeredis
import pytest
import redis

from auth.session_cache import SessionCache, SessionCacheUnavailable


@pytest.fixture
def cache() -> SessionCache:
    return SessionCache(fakeredis.FakeRedis(decode_responses=True))


class TestSessionCache:

    def test_store_and_get(self, cache):
        cache.store("acc-1", "token-a", 60)
        assert cache.get("acc-1") == "token-a"

    def test_get_absent_returns_none(self, cache):
        assert cache.get("nobody") is None

    def test_store_overwrites_previous_token(self, cache):
        """Only one live refresh token per account."""
        cache.store("acc-1", "token-a", 60)
        cache.store("acc-1", "token-b", 60)
        assert cache.get("acc-1") == "token-b"

    def test_store_sets_ttl(self):
        client = fakeredis.FakeRedis(decode_responses=True)
        SessionCache(client).store("acc-1", "token-a", 3600)

        ttl = client.ttl("refresh_token:acc-1")
        assert 0 < ttl <= 3600

    def test_delete_removes_entry(self, cache):
        cache.store("acc-1", "token-a", 60)
        cache.delete("acc-1")
        assert cache.get("acc-1") is None

    def test_delete_absent_is_noop(self, cache):
        cache.delete("never-stored")
        assert cache.get("never-stored") is None

    def test_decodes_bytes_from_raw_client(self):
        cache = SessionCache(fakeredis.FakeRedis())
        cache.store("acc-1", "token-a", 60)
        assert cache.get("acc-1") == "token-a"


class TestSessionCacheUnavailable:
    """Redis failures surface as SessionCacheUnavailable."""

    @pytest.fixture
    def broken_cache(self) -> SessionCache:
        client = MagicMock()
        error = redis.exceptions.ConnectionError("connection refused")
        client.get.side_effect = error
        client.set.side_effect = error
        client.delete.side_effect = error
        return SessionCache(client)

    def test_get_raises(self, broken_cache):
        with pytest.raises(SessionCacheUnavailable):
            broken_cache.get("acc-1")

    def test_store_raises(self, broken_cache):
        with pytest.raises(SessionCacheUnavailable):
            broken_cache.store("acc-1", "token", 60)

    def test_delete_raises(self, broken_cache):
        with pytest.raises(SessionCacheUnavailable):
            broken_cache.delete("acc-1")
