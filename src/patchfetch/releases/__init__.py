"""
patchfetch release subsystem

Core Components:
- interfaces: Release/Asset/Patch/CommitEntry records, FetchResult, SettingsStore
- http_cache: In-memory, time-boxed response cache
- async_client: aiohttp transport bound to one feed base URL
- file_cache: URL-keyed on-disk cache of downloaded assets
- github_source: Release lookups (latest, by tag, feed "latest")
- assets: Suffix-based asset selection
- changelog: Release note aggregation since the installed version
- commits: Commit history for a package's patch sources
- patches: Patch catalog resolution and decoding
"""

from .assets import select_asset
from .async_client import AsyncGitHubClient
from .changelog import ChangelogAggregator
from .commits import CommitHistoryFetcher
from .file_cache import FileCacheManager
from .github_source import GithubReleaseSource, create_release_from_github_data
from .http_cache import HttpResponseCache
from .interfaces import (
    Asset,
    CommitEntry,
    FetchResult,
    Patch,
    Release,
    SettingsStore,
)
from .patches import PatchCatalogLoader, parse_patch_catalog

__all__ = [
    # Interfaces
    "Asset",
    "CommitEntry",
    "FetchResult",
    "Patch",
    "Release",
    "SettingsStore",
    # Caching and transport
    "HttpResponseCache",
    "AsyncGitHubClient",
    "FileCacheManager",
    # Lookups
    "GithubReleaseSource",
    "create_release_from_github_data",
    "select_asset",
    "ChangelogAggregator",
    "CommitHistoryFetcher",
    "PatchCatalogLoader",
    "parse_patch_catalog",
]
