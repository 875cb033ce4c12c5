"""
Changelog aggregation across releases

Builds one changelog covering every release newer than the installed version
by appending the notes of the intermediate releases to the newest release's
body.
"""

import dataclasses
from typing import List, Optional

from patchfetch.constants import CHANGELOG_SECTION_PREFIX, VERSION_TAG_PREFIX
from patchfetch.exceptions import ConfigurationError, VersionNotFoundError
from patchfetch.log_utils import logger

from .github_source import GithubReleaseSource
from .interfaces import FetchResult, Release, SettingsStore


def find_boundary_index(releases: List[Release], current_version: str) -> int:
    """
    Return the position of the installed version's release in a newest-first list.

    The installed release is tagged `"v" + current_version`. The scan is capped
    at the length of the list.

    Raises:
        VersionNotFoundError: If no release in the list carries that tag.
    """
    wanted = f"{VERSION_TAG_PREFIX}{current_version}"
    for index, release in enumerate(releases):
        if release.tag_name == wanted:
            return index
    raise VersionNotFoundError(current_version, scanned=len(releases))


def merge_release_notes(releases: List[Release], boundary: int) -> Release:
    """
    Fold the notes of releases 1..boundary-1 into a copy of release 0.

    Each intermediate release contributes `"\\n# <tag>\\n<body>"`, newest first.
    The releases in the list are left untouched.
    """
    base = releases[0]
    sections = [
        f"\n{CHANGELOG_SECTION_PREFIX}{release.tag_name}\n{release.body}"
        for release in releases[1:boundary]
    ]
    return dataclasses.replace(base, body=base.body + "".join(sections))


class ChangelogAggregator:
    """
    Aggregates release notes between the installed version and the newest release.

    Parameters:
        source (GithubReleaseSource): Release lookups for the feed.
        settings (Optional[SettingsStore]): Used to read the installed version
            when the caller does not pass one.
    """

    def __init__(
        self, source: GithubReleaseSource, settings: Optional[SettingsStore] = None
    ):
        self.source = source
        self.settings = settings

    def _installed_version(self) -> str:
        if self.settings is None:
            raise ConfigurationError("No installed version given and no settings store")
        return self.settings.get_current_manager_version()

    async def aggregate(
        self, repo: str, current_version: Optional[str] = None
    ) -> FetchResult:
        """
        Return the newest release of `repo` with all newer release notes merged into its body.

        Only the first page of releases is examined. If the installed version is
        not on it the result fails with `version_not_found` rather than guessing.

        Parameters:
            repo (str): Repository identifier, e.g. "owner/manager".
            current_version (Optional[str]): Installed version without the "v"
                prefix; read from the settings store when omitted.

        Returns:
            FetchResult: `value` is the aggregated Release. `configuration_error`
            when no version is given and none is recorded in the settings store.
        """
        if current_version is None:
            try:
                current_version = self._installed_version()
            except ConfigurationError as e:
                logger.warning("Cannot build changelog for %s: %s", repo, e)
                return FetchResult.from_error(e)

        result = await self.source.list_releases(repo)
        if not result.success:
            return result
        releases: List[Release] = result.value

        try:
            boundary = find_boundary_index(releases, current_version)
        except VersionNotFoundError as e:
            logger.warning("Cannot build changelog for %s: %s", repo, e)
            return FetchResult.from_error(e)

        logger.debug(
            "Installed version %s is %d release(s) behind %s",
            current_version,
            boundary,
            releases[0].tag_name,
        )
        return FetchResult.ok(merge_release_notes(releases, boundary))
