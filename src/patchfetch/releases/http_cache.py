"""
In-memory HTTP response cache

Completed JSON responses are kept for a bounded staleness window and keyed by
request identity (method, URL and query). Eviction is purely time based; there
is no size bound. Concurrent identical requests that are still in flight are
not coalesced.
"""

import time
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple
from urllib.parse import urlencode

from patchfetch.constants import HTTP_CACHE_MAX_STALE_SECONDS
from patchfetch.log_utils import logger
from patchfetch.utils import track_api_cache_hit, track_api_cache_miss


class _CacheEntry(NamedTuple):
    payload: Any
    stored_at: float


class HttpResponseCache:
    """
    Time-boxed response store shared by every request a client issues.

    Parameters:
        max_stale_seconds (float): Maximum age of an entry before it is refetched.
        clock (Callable[[], float]): Monotonic time source, overridable in tests.
    """

    def __init__(
        self,
        max_stale_seconds: float = HTTP_CACHE_MAX_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_stale_seconds = max_stale_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, str], _CacheEntry] = {}

    @staticmethod
    def build_cache_key(
        method: str, url: str, params: Optional[Dict[str, Any]] = None
    ) -> Tuple[str, str]:
        """
        Create a stable cache key from the request method, URL and query parameters.

        Parameters with value `None` are dropped and the remainder is sorted so
        that `{"a": 1, "b": 2}` and `{"b": 2, "a": 1}` share an entry.

        Returns:
            Tuple[str, str]: The upper-cased method and the URL with its encoded query.
        """
        filtered = {k: v for k, v in (params or {}).items() if v is not None}
        if filtered:
            url = f"{url}?{urlencode(sorted(filtered.items()))}"
        return method.upper(), url

    def get(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        default: Any = None,
    ) -> Any:
        """
        Return the cached payload for a request if it is younger than the staleness window.

        Stale entries are dropped on access so the next request refetches.
        Pass a sentinel as `default` to tell a miss apart from a cached `None`
        (a JSON `null` body).

        Returns:
            The cached payload, or `default` on a miss or a stale entry.
        """
        key = self.build_cache_key(method, url, params)
        entry = self._entries.get(key)
        if entry is None:
            track_api_cache_miss()
            return default

        age_s = self._clock() - entry.stored_at
        if age_s >= self.max_stale_seconds:
            logger.debug(
                "Cache stale for %s %s (age %.0fs >= %ss); refreshing",
                key[0],
                key[1],
                age_s,
                self.max_stale_seconds,
            )
            self._entries.pop(key, None)
            track_api_cache_miss()
            return default

        logger.debug("Using cached response for %s (cached %.0fs ago)", key[1], age_s)
        track_api_cache_hit()
        return entry.payload

    def put(
        self,
        method: str,
        url: str,
        payload: Any,
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Store a completed response payload under its request key.

        Every entry that has reached the staleness window is evicted first, so
        keys that are never read again (e.g. one per `since` timestamp) do not
        accumulate.
        """
        now = self._clock()
        self._evict_expired(now)
        key = self.build_cache_key(method, url, params)
        self._entries[key] = _CacheEntry(payload, now)

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, entry in self._entries.items()
            if now - entry.stored_at >= self.max_stale_seconds
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cached responses", len(expired))

    def clear(self) -> None:
        """Drop every cached response."""
        count = len(self._entries)
        self._entries.clear()
        logger.debug("Cleared %d cached HTTP responses", count)

    def __len__(self) -> int:
        return len(self._entries)
