"""
GitHub Release Source

This module resolves releases from a GitHub-style release feed: the newest
release, a release by tag, or the feed's "latest" release. Every request goes
through the client's response cache, and every failure is returned as a
FetchResult instead of raised.
"""

from typing import Any, List
from urllib.parse import quote

from patchfetch.exceptions import (
    MalformedPayloadError,
    PatchfetchError,
    ResourceNotFoundError,
)
from patchfetch.log_utils import logger

from .async_client import AsyncGitHubClient
from .interfaces import Asset, FetchResult, Release


def create_release_from_github_data(release_data: Any) -> Release:
    """
    Create a Release object from GitHub API release data.

    Malformed individual assets are skipped with a warning; a release whose own
    shape is wrong raises instead, so callers never see a release list with
    shifted positions.

    Parameters:
        release_data (Any): One decoded release object from the feed.

    Returns:
        Release: The parsed release with its assets in feed order.

    Raises:
        MalformedPayloadError: If the entry is not an object, has no usable
            `tag_name`, or its `assets` field is not a list.
    """
    if not isinstance(release_data, dict):
        raise MalformedPayloadError(
            f"Release entry must be an object, got {type(release_data).__name__}"
        )

    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise MalformedPayloadError("Release entry has a missing or invalid tag_name")

    assets_data = release_data.get("assets", [])
    if not isinstance(assets_data, list):
        raise MalformedPayloadError(
            f"Release {tag_name} has an invalid assets field",
            details=type(assets_data).__name__,
        )

    assets: List[Asset] = []
    for asset_data in assets_data:
        if not isinstance(asset_data, dict):
            logger.warning("Skipping malformed asset for release %s", tag_name)
            continue
        asset_name = asset_data.get("name")
        download_url = asset_data.get("browser_download_url")
        if not isinstance(asset_name, str) or not isinstance(download_url, str):
            logger.warning("Skipping asset with invalid name or URL for release %s", tag_name)
            continue
        try:
            asset_size = int(asset_data.get("size") or 0)
        except (TypeError, ValueError):
            asset_size = 0
        assets.append(
            Asset(
                name=asset_name,
                download_url=download_url,
                size=asset_size,
                content_type=asset_data.get("content_type"),
            )
        )

    body = release_data.get("body")
    return Release(
        tag_name=tag_name,
        body=body if isinstance(body, str) else "",
        assets=assets,
        prerelease=bool(release_data.get("prerelease", False)),
        published_at=release_data.get("published_at"),
        name=release_data.get("name"),
    )


class GithubReleaseSource:
    """
    Release lookups against one feed.

    Usage:
        source = GithubReleaseSource(client)
        result = await source.latest_release("owner/repo")
        if result.success:
            release = result.value
    """

    def __init__(self, client: AsyncGitHubClient):
        self.client = client

    @staticmethod
    def _releases_path(repo: str) -> str:
        return f"/repos/{repo}/releases"

    async def list_releases(self, repo: str) -> FetchResult:
        """
        Fetch the first page of releases for `repo`, newest first.

        Returns:
            FetchResult: `value` is a List[Release] (possibly empty).
        """
        try:
            data = await self.client.get_json(self._releases_path(repo))
            if not isinstance(data, list):
                raise MalformedPayloadError(
                    f"Expected a release list for {repo}, got {type(data).__name__}"
                )
            releases = [create_release_from_github_data(item) for item in data]
        except PatchfetchError as e:
            return self._failed(repo, "releases", e)

        logger.debug("Fetched %d releases for %s", len(releases), repo)
        return FetchResult.ok(releases)

    async def latest_release(self, repo: str) -> FetchResult:
        """
        Return the newest release, i.e. the first entry of the release list.

        Returns:
            FetchResult: `value` is a Release; `not_found` when the list is empty.
        """
        result = await self.list_releases(repo)
        if not result.success:
            return result
        releases: List[Release] = result.value
        if not releases:
            logger.info("No releases published for %s", repo)
            return FetchResult.from_error(
                ResourceNotFoundError(f"No releases found for {repo}")
            )
        return FetchResult.ok(releases[0])

    async def release_by_tag(self, repo: str, tag: str) -> FetchResult:
        """
        Return the release whose tag equals `tag` exactly.

        The tag is sent verbatim, including any `v` prefix the feed uses.

        Returns:
            FetchResult: `value` is a Release; `not_found` when the tag does not exist.
        """
        path = f"{self._releases_path(repo)}/tags/{quote(tag, safe='')}"
        return await self._fetch_single(repo, path, f"tag {tag}")

    async def latest_named_release(self, repo: str) -> FetchResult:
        """
        Return the release the feed marks as "latest".

        Unlike latest_release(), this skips prereleases and drafts because the
        feed itself picks the release.

        There is no separate track argument: a release track is identified by
        its repository, so each track (manager, patches, integrations) is
        queried through its own `repo`.

        Returns:
            FetchResult: `value` is a Release.
        """
        path = f"{self._releases_path(repo)}/latest"
        return await self._fetch_single(repo, path, "latest release")

    async def _fetch_single(self, repo: str, path: str, what: str) -> FetchResult:
        try:
            data = await self.client.get_json(path)
            release = create_release_from_github_data(data)
        except PatchfetchError as e:
            return self._failed(repo, what, e)
        return FetchResult.ok(release)

    @staticmethod
    def _failed(repo: str, what: str, error: PatchfetchError) -> FetchResult:
        if isinstance(error, ResourceNotFoundError):
            logger.info("No %s found for %s", what, repo)
        else:
            logger.error("Error fetching %s for %s: %s", what, repo, error)
        return FetchResult.from_error(error)
