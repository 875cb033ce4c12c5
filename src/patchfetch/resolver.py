"""
Release resolver facade

Wires one feed client, its response cache, the file cache and the settings
store together and exposes the operations the application layer calls.
"""

from datetime import datetime
from typing import Optional

from patchfetch.constants import GITHUB_API_BASE, HTTP_CACHE_MAX_STALE_SECONDS
from patchfetch.exceptions import ResourceNotFoundError
from patchfetch.log_utils import logger
from patchfetch.releases import (
    AsyncGitHubClient,
    ChangelogAggregator,
    CommitHistoryFetcher,
    FetchResult,
    FileCacheManager,
    GithubReleaseSource,
    HttpResponseCache,
    PatchCatalogLoader,
    SettingsStore,
    select_asset,
)
from patchfetch.settings import YamlSettingsStore


class ReleaseResolver:
    """
    Entry point for release, asset, changelog, commit and patch catalog lookups.

    Each resolver owns the client for exactly one API base URL; use one
    resolver per feed rather than re-pointing a shared one.

    Example:
        async with ReleaseResolver() as resolver:
            result = await resolver.load_patches("owner/patches", "v2.160.0")
            patches = result.unwrap_or([])

    Parameters:
        base_url (str): API root of the release feed.
        settings (Optional[SettingsStore]): Settings store; a YamlSettingsStore
            in the user config directory is used when omitted.
        cache_dir (Optional[str]): Directory for downloaded files.
        max_stale_seconds (float): Staleness window of the response cache.
        client (Optional[AsyncGitHubClient]): Pre-built transport, mainly for tests.
    """

    def __init__(
        self,
        base_url: str = GITHUB_API_BASE,
        settings: Optional[SettingsStore] = None,
        cache_dir: Optional[str] = None,
        max_stale_seconds: float = HTTP_CACHE_MAX_STALE_SECONDS,
        client: Optional[AsyncGitHubClient] = None,
    ):
        if client is None:
            client = AsyncGitHubClient(
                base_url, http_cache=HttpResponseCache(max_stale_seconds)
            )
        self.client = client
        self.http_cache = client.http_cache
        self.settings = settings if settings is not None else YamlSettingsStore()
        self.file_cache = FileCacheManager(client, cache_dir)
        self.source = GithubReleaseSource(client)
        self.changelog = ChangelogAggregator(self.source, self.settings)
        self.commits = CommitHistoryFetcher(client)
        self.patches = PatchCatalogLoader(self.source, self.file_cache, self.settings)

    async def __aenter__(self) -> "ReleaseResolver":
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()

    async def latest_release(self, repo: str) -> FetchResult:
        return await self.source.latest_release(repo)

    async def release_by_tag(self, repo: str, tag: str) -> FetchResult:
        return await self.source.release_by_tag(repo, tag)

    async def latest_named_release(self, repo: str) -> FetchResult:
        return await self.source.latest_named_release(repo)

    async def get_latest_release_file(self, extension: str, repo: str) -> FetchResult:
        """
        Download (or reuse) the first `extension` asset of the newest release of `repo`.

        Returns:
            FetchResult: `value` is the local Path.
        """
        release_result = await self.source.latest_release(repo)
        if not release_result.success:
            return release_result

        release = release_result.value
        asset = select_asset(release, extension)
        if asset is None:
            logger.warning(
                "Latest release %s of %s has no %s asset",
                release.tag_name,
                repo,
                extension,
            )
            return FetchResult.from_error(
                ResourceNotFoundError(
                    f"No {extension} asset in release {release.tag_name} of {repo}"
                )
            )
        return await self.file_cache.fetch_file(asset.download_url)

    async def get_patches_release_file(
        self, extension: str, repo: str, version: str, url: str = ""
    ) -> FetchResult:
        return await self.patches.get_patches_release_file(extension, repo, version, url)

    async def load_patches(
        self, repo: str, version: str, direct_url: str = ""
    ) -> FetchResult:
        return await self.patches.load_patches(repo, version, direct_url)

    async def get_latest_manager_release(
        self, repo: str, current_version: Optional[str] = None
    ) -> FetchResult:
        """Newest manager release with the notes of every newer-than-installed release merged in."""
        return await self.changelog.aggregate(repo, current_version)

    async def commits_since(
        self, package_id: str, repo: str, since: datetime
    ) -> FetchResult:
        return await self.commits.commits_since(package_id, repo, since)

    def clear_all_cache(self) -> bool:
        """
        Drop every cached HTTP response and every downloaded file.

        Returns:
            bool: `True` if the file cache was fully cleared.
        """
        self.http_cache.clear()
        return self.file_cache.clear_all()
