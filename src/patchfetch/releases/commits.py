"""
Commit history for a package's patch sources

Looks up the patches source directory for an app package and lists the commits
that touched it since a given moment.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from patchfetch.constants import PACKAGE_PATCH_PATHS, PATCH_SOURCE_ROOT
from patchfetch.exceptions import (
    MalformedPayloadError,
    MissingMappingError,
    PatchfetchError,
)
from patchfetch.log_utils import logger

from .async_client import AsyncGitHubClient
from .interfaces import CommitEntry, FetchResult


def resolve_patch_path(
    package_id: str, package_paths: Mapping[str, str] = PACKAGE_PATCH_PATHS
) -> str:
    """
    Map an app package identifier to its patches source directory.

    Raises:
        MissingMappingError: If the package has no known directory.
    """
    app_dir = package_paths.get(package_id)
    if not app_dir:
        raise MissingMappingError(package_id)
    return f"{PATCH_SOURCE_ROOT}/{app_dir}"


def parse_commit(commit_data: Any) -> CommitEntry:
    """
    Turn one commit object from the feed into a CommitEntry.

    Only the first line of the message is kept.

    Raises:
        MalformedPayloadError: If the commit lacks a message or author name.
    """
    try:
        commit = commit_data["commit"]
        message = commit["message"]
        author_name = commit["author"]["name"]
    except (KeyError, TypeError) as e:
        raise MalformedPayloadError("Commit entry is missing fields", details=str(e)) from e
    if not isinstance(message, str) or not isinstance(author_name, str):
        raise MalformedPayloadError("Commit entry has non-text message or author")
    return CommitEntry(summary=message.split("\n", 1)[0], author_name=author_name)


def _format_since(since: datetime) -> str:
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return since.isoformat()


class CommitHistoryFetcher:
    """
    Lists commits touching a package's patch sources.

    Parameters:
        client (AsyncGitHubClient): Transport bound to the feed.
        package_paths (Mapping[str, str]): Package identifier to app directory table.
    """

    def __init__(
        self,
        client: AsyncGitHubClient,
        package_paths: Optional[Mapping[str, str]] = None,
    ):
        self.client = client
        self.package_paths = (
            package_paths if package_paths is not None else PACKAGE_PATCH_PATHS
        )

    async def commits_since(
        self, package_id: str, repo: str, since: datetime
    ) -> FetchResult:
        """
        Return the commits on `repo` that touched `package_id`'s patches since `since`.

        Entries keep the feed's order (newest first). An unmapped package fails
        with `missing_mapping` before any request is made.

        Returns:
            FetchResult: `value` is a List[CommitEntry].
        """
        try:
            path = resolve_patch_path(package_id, self.package_paths)
        except MissingMappingError as e:
            logger.warning("Not fetching commits: %s", e)
            return FetchResult.from_error(e)

        params: Dict[str, Any] = {"path": path, "since": _format_since(since)}
        try:
            data = await self.client.get_json(f"/repos/{repo}/commits", params=params)
            if not isinstance(data, list):
                raise MalformedPayloadError(
                    f"Expected a commit list for {repo}, got {type(data).__name__}"
                )
            entries: List[CommitEntry] = [parse_commit(item) for item in data]
        except PatchfetchError as e:
            logger.error("Error fetching commits for %s on %s: %s", package_id, repo, e)
            return FetchResult.from_error(e)

        logger.debug("Fetched %d commits for %s on %s", len(entries), package_id, repo)
        return FetchResult.ok(entries)
