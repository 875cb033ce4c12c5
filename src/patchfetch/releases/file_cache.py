"""
On-disk file cache for downloaded release assets

Files are keyed by their source URL: the cache file name is derived from the
URL, so a second request for the same URL is served from disk without touching
the network, across process restarts, until clear_all() is called.
"""

import os
import shutil
from pathlib import Path
from typing import Optional

from patchfetch.constants import APP_NAME, FILE_CACHE_DIR_NAME
from patchfetch.exceptions import PatchfetchError
from patchfetch.log_utils import logger
from patchfetch.utils import (
    track_api_cache_hit,
    track_api_cache_miss,
    track_file_download,
    url_to_cache_filename,
)

from .async_client import AsyncGitHubClient
from .interfaces import FetchResult


class FileCacheManager:
    """
    URL-keyed cache of downloaded files.

    Parameters:
        client (AsyncGitHubClient): Transport used for downloads on a miss.
        cache_dir (Optional[str]): Directory holding the cached files. Defaults to
            the platform user cache directory for patchfetch.
    """

    def __init__(self, client: AsyncGitHubClient, cache_dir: Optional[str] = None):
        self.client = client
        self.cache_dir = Path(cache_dir or self._get_default_cache_dir())
        self._ensure_cache_dir_exists()

    def _get_default_cache_dir(self) -> str:
        import platformdirs

        return os.path.join(platformdirs.user_cache_dir(APP_NAME), FILE_CACHE_DIR_NAME)

    def _ensure_cache_dir_exists(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create cache directory {self.cache_dir}: {e}")
            raise

    def get_cached_path(self, url: str) -> Path:
        """Return where the file for `url` lives (or will live) in the cache."""
        return self.cache_dir / url_to_cache_filename(url)

    def is_cached(self, url: str) -> bool:
        return self.get_cached_path(url).is_file()

    async def fetch_file(self, url: str) -> FetchResult:
        """
        Return the local copy of `url`, downloading it only if it is not cached yet.

        HTTP cache headers are ignored: once a URL has been materialized the file
        is reused until the cache is cleared.

        Returns:
            FetchResult: `value` is the local Path on success; download or
            filesystem failures are reported through `error_type`.
        """
        target = self.get_cached_path(url)
        if target.is_file():
            logger.debug("Using cached file %s for %s", target.name, url)
            track_api_cache_hit()
            return FetchResult.ok(target)

        track_api_cache_miss()
        try:
            path = await self.client.download_file(url, target)
        except PatchfetchError as e:
            logger.error("Could not fetch %s: %s", url, e)
            return FetchResult.from_error(e)

        track_file_download()
        return FetchResult.ok(path)

    def clear_all(self) -> bool:
        """
        Remove every file from the cache directory.

        Returns:
            bool: `True` if all entries were removed or none were present, `False` if any removal failed.
        """
        try:
            with os.scandir(self.cache_dir) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            shutil.rmtree(entry.path)
                        else:
                            os.remove(entry.path)
                    except OSError as e:
                        logger.error(f"Could not remove cache file {entry.name}: {e}")
                        return False
        except FileNotFoundError:
            self._ensure_cache_dir_exists()
            return True
        except OSError as e:
            logger.error(f"Could not clear cache directory {self.cache_dir}: {e}")
            return False

        logger.info(f"Cleared file cache at {self.cache_dir}")
        return True
