"""
tests/test_cache.py -- Unit tests for cache/store.py.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from cache.store import ResponseCache


@pytest.fixture
def cache():
    c = ResponseCache(":memory:", ttl=60)
    yield c
    c.close()


class TestResponseCache:
    def test_keys_are_case_insensitive(self, cache: ResponseCache) -> None:
        cache.set("github:stats:OctoCat", {"total_stars": 3})
        assert cache.get("github:stats:octocat") == {"total_stars": 3}

    def test_missing_key(self, cache: ResponseCache) -> None:
        assert cache.get("github:profile:nobody") is None

    def test_expired_entry_is_dropped(self, cache: ResponseCache) -> None:
        with patch("cache.store.time.time", return_value=1000.0):
            cache.set("k", [1, 2])
        with patch("cache.store.time.time", return_value=1061.0):
            assert cache.get("k") is None
        with patch("cache.store.time.time", return_value=1000.0):
            assert cache.get("k") is None

    def test_per_entry_ttl(self, cache: ResponseCache) -> None:
        with patch("cache.store.time.time", return_value=1000.0):
            cache.set("short", 1, ttl=5)
            cache.set("long", 2)
        with patch("cache.store.time.time", return_value=1010.0):
            assert cache.get("short") is None
            assert cache.get("long") == 2

    def test_get_or_set_loads_once(self, cache: ResponseCache) -> None:
        loader = MagicMock(return_value={"login": "octocat"})
        assert cache.get_or_set("github:profile:octocat", loader) == {"login": "octocat"}
        assert cache.get_or_set("github:profile:octocat", loader) == {"login": "octocat"}
        loader.assert_called_once()

    def test_get_or_set_does_not_cache_failures(self, cache: ResponseCache) -> None:
        loader = MagicMock(side_effect=RuntimeError("upstream down"))
        with pytest.raises(RuntimeError):
            cache.get_or_set("k", loader)
        assert cache.get("k") is None

    def test_invalidate_prefix(self, cache: ResponseCache) -> None:
        cache.set("github:repos:a", [])
        cache.set("github:stats:a", {})
        cache.set("githubx:other", {})
        assert cache.invalidate("github:") == 2
        assert cache.get("githubx:other") == {}

    def test_invalidate_treats_wildcards_literally(self, cache: ResponseCache) -> None:
        cache.set("a_b", 1)
        cache.set("axb", 2)
        assert cache.invalidate("a_") == 1
        assert cache.get("axb") == 2

    def test_purge_expired(self, cache: ResponseCache) -> None:
        with patch("cache.store.time.time", return_value=1000.0):
            cache.set("old", 1, ttl=1)
            cache.set("fresh", 2, ttl=3600)
        with patch("cache.store.time.time", return_value=1100.0):
            assert cache.purge_expired() == 1
            assert cache.get("fresh") == 2
