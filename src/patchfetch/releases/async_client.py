"""
Async HTTP Client for patchfetch

This module provides asynchronous HTTP operations using aiohttp, with session
management, connection pooling and a transparent in-memory response cache.

One client is bound to one API base URL. Resolving releases against several
feeds means constructing several clients rather than reconfiguring a shared one.
"""

import asyncio
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiofiles  # type: ignore[import-untyped]
import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from patchfetch.constants import (
    BYTES_PER_MEGABYTE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECTOR_LIMIT,
    DEFAULT_REQUEST_TIMEOUT,
    FILE_SIZE_MB_LOGGING_THRESHOLD,
    GITHUB_API_BASE,
    HTTP_STATUS_ERROR_THRESHOLD,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_RETRY_THRESHOLD,
)
from patchfetch.exceptions import (
    FileSystemError,
    HTTPError,
    MalformedPayloadError,
    NetworkError,
    ResourceNotFoundError,
)
from patchfetch.log_utils import logger
from patchfetch.utils import get_user_agent, track_api_request

from .http_cache import HttpResponseCache

Pathish = Union[str, Path]

# Distinguishes a miss from a cached JSON null
_CACHE_MISS = object()


class AsyncGitHubClient:
    """
    Asynchronous release feed client using aiohttp.

    Provides async methods for:
    - Issuing cached JSON GET requests against the feed API
    - Downloading files with progress tracking and atomic replacement
    - Session management with connection pooling

    Example:
        async with AsyncGitHubClient("https://api.github.com") as client:
            releases = await client.get_json("/repos/owner/repo/releases")
    """

    def __init__(
        self,
        base_url: str = GITHUB_API_BASE,
        http_cache: Optional[HttpResponseCache] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_concurrent: int = 5,
        connector_limit: int = DEFAULT_CONNECTOR_LIMIT,
    ) -> None:
        """
        Initialize the async client.

        Parameters:
            base_url (str): API root that relative request paths are joined to.
            http_cache (Optional[HttpResponseCache]): Response cache; a private one is created when omitted.
            timeout (float): Total request timeout in seconds.
            max_concurrent (int): Maximum concurrent downloads (semaphore limit).
            connector_limit (int): Maximum total connections in the pool.
        """
        self.base_url = base_url.rstrip("/")
        self.http_cache = http_cache if http_cache is not None else HttpResponseCache()
        self.timeout = ClientTimeout(total=timeout)
        self.max_concurrent = max(1, int(max_concurrent))
        self.connector_limit = max(1, int(connector_limit))
        self._session: Optional[ClientSession] = None
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._closed: bool = False

    async def __aenter__(self) -> "AsyncGitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        """
        Ensure a session exists, creating one if needed.

        Returns:
            ClientSession: The active aiohttp session.
        """
        if self._session is None or self._session.closed:
            connector = TCPConnector(
                limit=self.connector_limit,
                limit_per_host=self.max_concurrent,
                enable_cleanup_closed=True,
            )
            self._session = ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers=self._get_default_headers(),
            )
        return self._session

    def _get_default_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": get_user_agent(),
        }

    async def close(self) -> None:
        """Close the client session and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
        self._closed = True

    def build_url(self, path: str) -> str:
        """Join a feed path such as `/repos/o/r/releases` onto the base URL."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_json(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Issue a GET request and return the decoded JSON payload, consulting the response cache first.

        Only successful responses are cached; errors always reach the network
        again on the next call.

        Parameters:
            path (str): Feed path relative to the base URL (or an absolute URL).
            params (Optional[Dict[str, Any]]): Query parameters.

        Returns:
            Any: The decoded JSON document.

        Raises:
            ResourceNotFoundError: If the server answers 404.
            HTTPError: For any other error status.
            NetworkError: For connection, DNS, TLS or timeout failures.
            MalformedPayloadError: If the body is not valid JSON.
        """
        url = self.build_url(path)
        cached = self.http_cache.get("GET", url, params, default=_CACHE_MISS)
        if cached is not _CACHE_MISS:
            return cached

        session = await self._ensure_session()
        try:
            track_api_request()
            async with session.get(url, params=params or None) as response:
                if response.status == HTTP_STATUS_NOT_FOUND:
                    raise ResourceNotFoundError(
                        f"Resource not found: {url}",
                        endpoint=url,
                        status_code=response.status,
                    )
                response.raise_for_status()
                data = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            logger.error(f"HTTP error requesting {url}: {e.status}")
            raise HTTPError(
                f"HTTP error {e.status}: {e.message}",
                status_code=e.status,
                url=url,
                is_retryable=e.status >= HTTP_STATUS_RETRY_THRESHOLD,
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error requesting {url}: {e}")
            raise NetworkError(f"Network error: {e}", url=url, is_retryable=True) from e
        except ValueError as e:
            raise MalformedPayloadError(
                f"Invalid JSON returned by {url}", endpoint=url, details=str(e)
            ) from e

        self.http_cache.put("GET", url, data, params)
        return data

    async def download_file(
        self,
        url: str,
        target_path: Pathish,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_callback: Optional[Any] = None,
    ) -> Path:
        """
        Download a file to the given path with progress tracking and atomic replacement.

        The body is streamed into a temporary sibling file that only replaces
        `target_path` once complete, so a present target is always a whole file.

        Parameters:
            url (str): Source URL to download.
            target_path (Pathish): Destination file path; parent directories will be created if missing.
            chunk_size (int): Number of bytes to read per chunk.
            progress_callback (Optional[callable]): Optional callback invoked with (downloaded: int, total: Optional[int], filename: str).
                The callback may be a coroutine function; exceptions raised by the callback are logged and ignored.

        Returns:
            Path: The downloaded file.

        Raises:
            HTTPError: On an error status.
            NetworkError: On transport failures.
            FileSystemError: If the file cannot be written.
        """
        session = await self._ensure_session()
        target = Path(target_path)

        async with self._semaphore:
            temp_path: Optional[Path] = None

            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                # Unique per call: concurrent downloads of one URL each get their own file
                temp_fd, temp_name = tempfile.mkstemp(
                    dir=target.parent, prefix=f"{target.name}.tmp."
                )
                os.close(temp_fd)
                temp_path = Path(temp_name)
                start_time = time.time()

                track_api_request()
                async with session.get(url) as response:
                    if response.status >= HTTP_STATUS_ERROR_THRESHOLD:
                        raise HTTPError(
                            f"HTTP error {response.status}",
                            status_code=response.status,
                            url=url,
                            is_retryable=response.status >= HTTP_STATUS_RETRY_THRESHOLD,
                        )

                    raw_content_length = response.headers.get("Content-Length")
                    try:
                        total_size = (
                            int(raw_content_length) if raw_content_length else 0
                        )
                    except (TypeError, ValueError):
                        total_size = 0
                    downloaded = 0

                    async with aiofiles.open(temp_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(chunk_size):
                            await f.write(chunk)
                            downloaded += len(chunk)

                            if progress_callback:
                                try:
                                    result = progress_callback(
                                        downloaded, total_size or None, target.name
                                    )
                                    if asyncio.iscoroutine(result):
                                        await result
                                except Exception as cb_err:
                                    logger.debug(f"Progress callback error: {cb_err}")

                elapsed = time.time() - start_time
                file_size_mb = downloaded / BYTES_PER_MEGABYTE
                logger.debug(
                    f"Downloaded {url} in {elapsed:.2f}s ({file_size_mb:.2f} MB)"
                )

                temp_path.replace(target)

                if file_size_mb >= FILE_SIZE_MB_LOGGING_THRESHOLD:
                    logger.info(f"Downloaded: {target.name} ({file_size_mb:.1f} MB)")
                else:
                    logger.info(f"Downloaded: {target.name} ({downloaded} bytes)")

                return target

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Download failed for {url}: {e}")
                _remove_quietly(temp_path)
                raise NetworkError(
                    f"Download failed: {e}", url=url, is_retryable=True
                ) from e
            except OSError as e:
                logger.error(f"Filesystem error saving {target}: {e}")
                _remove_quietly(temp_path)
                raise FileSystemError(
                    f"Filesystem error: {e}", path=str(target)
                ) from e
            except HTTPError:
                _remove_quietly(temp_path)
                raise


def _remove_quietly(path: Optional[Path]) -> None:
    if path is not None and path.exists():
        try:
            path.unlink()
        except OSError:
            pass
