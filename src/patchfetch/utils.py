# src/patchfetch/utils.py
import hashlib
import importlib.metadata
import re
import threading
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlsplit

from patchfetch.constants import APP_NAME

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None

# Anything outside this set is replaced when deriving a cache file name
_UNSAFE_FILENAME_RX = re.compile(r"[^A-Za-z0-9._-]+")

# API request tracking for session summary
_api_request_count = 0
_api_cache_hits = 0
_api_cache_misses = 0
_file_downloads = 0
_api_tracking_lock = threading.Lock()


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `patchfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def track_api_request() -> None:
    """Track a request that actually went over the network."""
    global _api_request_count
    with _api_tracking_lock:
        _api_request_count += 1


def track_api_cache_hit() -> None:
    """Track a cache hit for API requests."""
    global _api_cache_hits
    with _api_tracking_lock:
        _api_cache_hits += 1


def track_api_cache_miss() -> None:
    """Track a cache miss for API requests."""
    global _api_cache_misses
    with _api_tracking_lock:
        _api_cache_misses += 1


def track_file_download() -> None:
    """Track an asset download that was not served from the file cache."""
    global _file_downloads
    with _api_tracking_lock:
        _file_downloads += 1


def get_api_request_summary() -> Dict[str, Any]:
    """
    Build a session-wide summary of API request and cache statistics.

    Returns:
        summary (dict): Keys include:
            - "total_requests" (int): API requests that reached the network this session.
            - "cache_hits" (int): Requests answered from the in-memory response cache.
            - "cache_misses" (int): Requests that missed or found a stale cache entry.
            - "file_downloads" (int): Asset downloads not served from the on-disk cache.
    """
    with _api_tracking_lock:
        return {
            "total_requests": _api_request_count,
            "cache_hits": _api_cache_hits,
            "cache_misses": _api_cache_misses,
            "file_downloads": _file_downloads,
        }


def reset_api_tracking() -> None:
    """Reset session-wide API request tracking counters."""
    global _api_request_count, _api_cache_hits, _api_cache_misses, _file_downloads
    with _api_tracking_lock:
        _api_request_count = 0
        _api_cache_hits = 0
        _api_cache_misses = 0
        _file_downloads = 0


def url_to_cache_filename(url: str) -> str:
    """
    Derive a stable, filesystem-safe file name for a download URL.

    The name is the first 16 hex digits of the URL's SHA-256 followed by the
    sanitized last path segment, so two different URLs never collide while the
    cached file keeps a recognizable name and extension.

    Parameters:
        url (str): The source URL.

    Returns:
        str: A file name such as `3f2a9c0d1e4b5a6c-patches.json`.
    """
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    basename = unquote(urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1])
    basename = _UNSAFE_FILENAME_RX.sub("_", basename).strip("._")
    if not basename:
        return digest
    return f"{digest}-{basename}"
