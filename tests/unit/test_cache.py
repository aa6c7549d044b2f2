"""Tests for cache utilities."""

from __future__ import annotations

import time

from secrets_store_rotator.utils.cache import TTLCache, make_cache_key


class TestCacheKey:
    """Test cases for make_cache_key function."""

    def test_make_cache_key(self):
        """Test making cache key."""
        key = make_cache_key("SecretProviderClass", "default", "spc-1")
        assert key == "SecretProviderClass:default:spc-1"

    def test_make_cache_key_different_values(self):
        """Test cache keys are unique for different resources."""
        key1 = make_cache_key("Pod", "ns1", "app")
        key2 = make_cache_key("Pod", "ns2", "app")
        key3 = make_cache_key("Secret", "ns1", "app")

        assert key1 != key2
        assert key1 != key3
        assert key2 != key3


class TestTTLCache:
    """Test cases for cache get/set operations."""

    def test_set_and_get(self):
        """Test setting and getting cached object."""
        cache = TTLCache(10.0)
        obj = {"name": "test", "value": 123}

        cache.set("test:key:1", obj)

        assert cache.get("test:key:1") == obj
        assert len(cache) == 1

    def test_get_missing(self):
        """Test getting non-existent cached object returns None."""
        assert TTLCache(10.0).get("nonexistent:key") is None

    def test_expiration(self):
        """Test that cached objects expire after TTL."""
        cache = TTLCache(0.05)
        cache.set("test:key:expire", {"data": "test"})

        assert cache.get("test:key:expire") == {"data": "test"}
        time.sleep(0.1)
        assert cache.get("test:key:expire") is None
        assert len(cache) == 0

    def test_zero_ttl_disables_caching(self):
        """A non-positive TTL stores nothing."""
        cache = TTLCache(0)
        cache.set("key", "value")

        assert cache.get("key") is None

    def test_overwrite(self):
        """Test that setting same key overwrites previous value."""
        cache = TTLCache(10.0)
        cache.set("key", {"version": 1})
        cache.set("key", {"version": 2})

        assert cache.get("key") == {"version": 2}


class TestCacheInvalidation:
    """Test cases for cache invalidation."""

    def test_invalidate_all(self):
        """Test invalidating all cache entries."""
        cache = TTLCache(10.0)
        cache.set("key1", 1)
        cache.set("key2", 2)

        cache.invalidate()

        assert cache.get("key1") is None
        assert cache.get("key2") is None

    def test_invalidate_with_pattern(self):
        """Test invalidating cache entries matching pattern."""
        cache = TTLCache(10.0)
        cache.set("Pod:default:a", "a")
        cache.set("Pod:default:b", "b")
        cache.set("Secret:default:c", "c")

        cache.invalidate("Pod")

        assert cache.get("Pod:default:a") is None
        assert cache.get("Pod:default:b") is None
        assert cache.get("Secret:default:c") == "c"

    def test_invalidate_empty_cache(self):
        """Test invalidating empty cache doesn't error."""
        cache = TTLCache(10.0)
        cache.invalidate()
        cache.invalidate("pattern")
