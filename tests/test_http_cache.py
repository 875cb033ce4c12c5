"""
Tests for the in-memory HTTP response cache.
"""

import pytest

from patchfetch.releases.http_cache import HttpResponseCache
from patchfetch.utils import get_api_request_summary, reset_api_tracking

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]

URL = "https://api.example.test/repos/owner/repo/releases"


@pytest.fixture
def cache(fake_clock):
    return HttpResponseCache(max_stale_seconds=60, clock=fake_clock)


class TestBuildCacheKey:
    def test_method_is_upper_cased(self):
        assert HttpResponseCache.build_cache_key("get", URL) == ("GET", URL)

    def test_query_parameters_are_sorted(self):
        first = HttpResponseCache.build_cache_key("GET", URL, {"b": 2, "a": 1})
        second = HttpResponseCache.build_cache_key("GET", URL, {"a": 1, "b": 2})

        assert first == second
        assert first[1] == f"{URL}?a=1&b=2"

    def test_none_parameters_are_dropped(self):
        key = HttpResponseCache.build_cache_key("GET", URL, {"since": None})

        assert key == ("GET", URL)

    def test_different_queries_get_different_keys(self):
        first = HttpResponseCache.build_cache_key("GET", URL, {"path": "a"})
        second = HttpResponseCache.build_cache_key("GET", URL, {"path": "b"})

        assert first != second


class TestHttpResponseCache:
    def test_miss_returns_none(self, cache):
        assert cache.get("GET", URL) is None

    def test_fresh_entry_is_returned(self, cache, fake_clock):
        cache.put("GET", URL, [{"tag_name": "v1"}])
        fake_clock.advance(59)

        assert cache.get("GET", URL) == [{"tag_name": "v1"}]

    def test_entry_at_staleness_limit_is_dropped(self, cache, fake_clock):
        cache.put("GET", URL, ["payload"])
        fake_clock.advance(60)

        assert cache.get("GET", URL) is None
        assert len(cache) == 0

    def test_refreshed_entry_restarts_window(self, cache, fake_clock):
        cache.put("GET", URL, ["old"])
        fake_clock.advance(50)
        cache.put("GET", URL, ["new"])
        fake_clock.advance(50)

        assert cache.get("GET", URL) == ["new"]

    def test_params_are_part_of_the_key(self, cache):
        cache.put("GET", URL, ["a"], {"path": "a"})

        assert cache.get("GET", URL, {"path": "a"}) == ["a"]
        assert cache.get("GET", URL, {"path": "b"}) is None
        assert cache.get("GET", URL) is None

    def test_clear_drops_everything(self, cache):
        cache.put("GET", URL, ["a"])
        cache.put("GET", f"{URL}/latest", {"tag_name": "v1"})

        cache.clear()

        assert len(cache) == 0
        assert cache.get("GET", URL) is None

    def test_hits_and_misses_are_tracked(self, cache):
        reset_api_tracking()
        cache.get("GET", URL)
        cache.put("GET", URL, ["a"])
        cache.get("GET", URL)

        summary = get_api_request_summary()
        assert summary["cache_misses"] == 1
        assert summary["cache_hits"] == 1

    def test_put_evicts_expired_entries(self, cache, fake_clock):
        for index in range(1000):
            cache.put("GET", URL, [], {"since": f"2024-01-01T00:00:{index:04d}"})
            fake_clock.advance(120)

        assert len(cache) == 1

    def test_put_keeps_fresh_entries(self, cache, fake_clock):
        cache.put("GET", URL, ["a"], {"path": "a"})
        fake_clock.advance(30)
        cache.put("GET", URL, ["b"], {"path": "b"})

        assert len(cache) == 2
        assert cache.get("GET", URL, {"path": "a"}) == ["a"]

    def test_cached_none_is_told_apart_from_miss(self, cache):
        missing = object()
        cache.put("GET", URL, None)

        assert cache.get("GET", URL, default=missing) is None
        assert cache.get("GET", f"{URL}/other", default=missing) is missing
