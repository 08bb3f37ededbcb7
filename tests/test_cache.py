# tests/test_cache.py

"""
Tests for the in-memory TTL cache and the sliding-window rate limiter.
"""

import pytest
from fastapi import HTTPException
from unittest.mock import Mock

from core.cache import cache_get, cache_set, cache_clear, cache_delete, cache_delete_prefix, SimpleCache
from core.rate_limiter import check_rate_limit, get_rate_limit_identifier, require_rate_limit


def test_cache_set_and_get():
    cache_set("test_key", "test_value", ttl_seconds=60)

    assert cache_get("test_key") == "test_value"


def test_cache_expiration():
    """Entries are dropped once their TTL has passed."""
    cache = SimpleCache()
    cache.set("expiring_key", "value", ttl_seconds=0)

    assert cache.get("expiring_key") is None
    assert cache.size() == 0


def test_cache_delete():
    cache_set("delete_key", "delete_value")
    cache_delete("delete_key")

    assert cache_get("delete_key") is None


def test_cache_delete_prefix():
    cache_set("rbac:u1:users:read", True)
    cache_set("rbac:u2:users:read", False)
    cache_set("nav:u1", ["dashboard"])

    assert cache_delete_prefix("rbac:") == 2
    assert cache_get("rbac:u1:users:read") is None
    assert cache_get("nav:u1") == ["dashboard"]


def test_cache_clear():
    cache_set("key1", "value1")
    cache_set("key2", "value2")

    cache_clear()

    assert cache_get("key1") is None
    assert cache_get("key2") is None


def test_rate_limit_window():
    results = [check_rate_limit("ip:1.2.3.4", max_requests=3, window_seconds=60) for _ in range(4)]

    assert [allowed for allowed, _ in results] == [True, True, True, False]
    assert results[0][1] == 2


def test_rate_limit_identifier_prefers_forwarded_for():
    request = Mock()
    request.client.host = "10.0.0.1"
    request.headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}

    assert get_rate_limit_identifier(request) == "ip:203.0.113.9"
    assert get_rate_limit_identifier(request, user_id="u1") == "user:u1"


def test_require_rate_limit_raises_429():
    request = Mock()
    request.client.host = "10.0.0.2"
    request.headers = {}

    require_rate_limit(request, max_requests=1, window_seconds=60, scope="test")
    with pytest.raises(HTTPException) as exc:
        require_rate_limit(request, max_requests=1, window_seconds=60, scope="test")

    assert exc.value.status_code == 429
    assert exc.value.headers["Retry-After"] == "60"
