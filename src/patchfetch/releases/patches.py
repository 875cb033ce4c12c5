"""
Patch catalog loading

Resolves the patch bundle assets of a patches release, remembers their
download URLs in the settings store, and decodes the JSON catalog into Patch
records.
"""

import json
from pathlib import Path
from typing import List

import aiofiles  # type: ignore[import-untyped]

from patchfetch.constants import APK_EXTENSION, JSON_EXTENSION
from patchfetch.exceptions import (
    ConfigurationError,
    FileSystemError,
    MalformedPayloadError,
    PatchfetchError,
    ResourceNotFoundError,
)
from patchfetch.log_utils import logger

from .assets import select_asset
from .file_cache import FileCacheManager
from .github_source import GithubReleaseSource
from .interfaces import FetchResult, Patch, SettingsStore


def parse_patch_catalog(text: str) -> List[Patch]:
    """
    Decode a patch catalog document.

    Raises:
        MalformedPayloadError: If the document is not a JSON list or any entry
            is malformed. No partial list is ever returned.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedPayloadError("Patch catalog is not valid JSON", details=str(e)) from e
    if not isinstance(data, list):
        raise MalformedPayloadError(
            f"Patch catalog must be a list, got {type(data).__name__}"
        )
    return [Patch.from_json(entry) for entry in data]


class PatchCatalogLoader:
    """
    Loads patch definitions for a given patches release.

    Parameters:
        source (GithubReleaseSource): Release lookups for the feed.
        file_cache (FileCacheManager): Materializes assets on disk.
        settings (SettingsStore): Receives the resolved asset download URLs.
    """

    def __init__(
        self,
        source: GithubReleaseSource,
        file_cache: FileCacheManager,
        settings: SettingsStore,
    ):
        self.source = source
        self.file_cache = file_cache
        self.settings = settings

    def _remember_download_url(self, extension: str, url: str) -> None:
        try:
            if extension == APK_EXTENSION:
                self.settings.set_integrations_download_url(url)
            else:
                self.settings.set_patches_download_url(url)
        except ConfigurationError as e:
            # Only the direct-URL shortcut is lost; the download itself proceeds.
            logger.warning("Could not remember download URL %s: %s", url, e)

    async def get_patches_release_file(
        self, extension: str, repo: str, version: str, url: str = ""
    ) -> FetchResult:
        """
        Return the local file of the `extension` asset in the `version` release of `repo`.

        A non-empty `url` skips the release lookup and is downloaded directly.
        Otherwise the release is looked up by tag, the first asset ending in
        `extension` is chosen and its URL is recorded in the settings store
        (integrations URL for ".apk", patches URL otherwise) before download.

        Returns:
            FetchResult: `value` is the local Path.
        """
        if url:
            return await self.file_cache.fetch_file(url)

        release_result = await self.source.release_by_tag(repo, version)
        if not release_result.success:
            return release_result

        asset = select_asset(release_result.value, extension)
        if asset is None:
            logger.warning("Release %s of %s has no %s asset", version, repo, extension)
            return FetchResult.from_error(
                ResourceNotFoundError(
                    f"No {extension} asset in release {version} of {repo}"
                )
            )

        self._remember_download_url(extension, asset.download_url)
        return await self.file_cache.fetch_file(asset.download_url)

    async def load_patches(
        self, repo: str, version: str, direct_url: str = ""
    ) -> FetchResult:
        """
        Download and decode the patch catalog of a patches release.

        Returns:
            FetchResult: `value` is a List[Patch]; malformed documents and
            missing assets fail without returning any patches.
        """
        file_result = await self.get_patches_release_file(
            JSON_EXTENSION, repo, version, direct_url
        )
        if not file_result.success:
            return file_result

        path: Path = file_result.value
        try:
            patches = parse_patch_catalog(await _read_text(path))
        except PatchfetchError as e:
            logger.error("Could not load patch catalog %s: %s", path.name, e)
            return FetchResult.from_error(e)

        logger.info("Loaded %d patches from %s", len(patches), path.name)
        return FetchResult.ok(patches)


async def _read_text(path: Path) -> str:
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()
    except UnicodeDecodeError as e:
        raise MalformedPayloadError(
            f"Patch catalog {path.name} is not UTF-8 text", details=str(e)
        ) from e
    except OSError as e:
        raise FileSystemError(f"Could not read {path}", path=str(path), details=str(e)) from e
