"""
Core Interfaces for the patchfetch release subsystem

This module defines the data structures shared by the release client, the
asset selector, the changelog aggregator, the commit history fetcher and the
patch catalog loader, plus the narrow settings-store interface they write to.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from patchfetch.constants import (
    ERROR_CONFIGURATION,
    ERROR_FILESYSTEM,
    ERROR_MALFORMED_PAYLOAD,
    ERROR_MISSING_MAPPING,
    ERROR_NETWORK_FAILURE,
    ERROR_NOT_FOUND,
    ERROR_VERSION_NOT_FOUND,
)
from patchfetch.exceptions import (
    ConfigurationError,
    DownloadError,
    FileSystemError,
    MalformedPayloadError,
    MissingMappingError,
    ResourceNotFoundError,
    VersionNotFoundError,
)


@dataclass
class Asset:
    """Represents a downloadable asset attached to a release."""

    name: str
    """The filename of the asset"""

    download_url: str
    """Direct URL to download the asset (the feed's browser_download_url)"""

    size: int = 0
    """File size in bytes, 0 when the feed omits it"""

    content_type: Optional[str] = None
    """MIME type of the asset"""


@dataclass
class Release:
    """Represents a tagged release from a repository's release feed."""

    tag_name: str
    """The release tag/version identifier (e.g., 'v1.2.0')"""

    body: str = ""
    """Release notes/markdown content"""

    assets: List[Asset] = field(default_factory=list)
    """Downloadable assets, in the order returned by the feed"""

    prerelease: bool = False
    """Whether this is a prerelease version"""

    published_at: Optional[str] = None
    """ISO 8601 timestamp when the release was published"""

    name: Optional[str] = None
    """Display title of the release"""


@dataclass
class CommitEntry:
    """A single commit from the patches source history, for display only."""

    summary: str
    author_name: str

    def __str__(self) -> str:
        return f"{self.summary} - {self.author_name}"


@dataclass
class Patch:
    """A patch definition decoded from the patch catalog document."""

    name: str
    description: Optional[str] = None
    version: Optional[str] = None
    excluded: bool = False
    dependencies: List[str] = field(default_factory=list)
    compatible_packages: List[Dict[str, Any]] = field(default_factory=list)
    options: List[Dict[str, Any]] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)
    """Every field declared for the patch, exactly as decoded"""

    @classmethod
    def from_json(cls, data: Any) -> "Patch":
        """
        Build a Patch from one decoded catalog entry.

        Raises:
            MalformedPayloadError: If the entry is not a mapping, lacks a string
                `name`, or carries list fields of the wrong type.
        """
        if not isinstance(data, dict):
            raise MalformedPayloadError(
                f"Patch entry must be an object, got {type(data).__name__}"
            )
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise MalformedPayloadError("Patch entry is missing a name")

        dependencies = data.get("dependencies") or []
        compatible_packages = data.get("compatiblePackages") or []
        options = data.get("options") or []
        if not isinstance(dependencies, list) or not all(
            isinstance(dep, str) for dep in dependencies
        ):
            raise MalformedPayloadError(f"Patch {name!r} has invalid dependencies")
        if not isinstance(compatible_packages, list) or not all(
            isinstance(pkg, dict) for pkg in compatible_packages
        ):
            raise MalformedPayloadError(
                f"Patch {name!r} has invalid compatiblePackages"
            )
        if not isinstance(options, list):
            raise MalformedPayloadError(f"Patch {name!r} has invalid options")

        version = data.get("version")
        description = data.get("description")
        return cls(
            name=name,
            description=description if isinstance(description, str) else None,
            version=version if isinstance(version, str) else None,
            excluded=bool(data.get("excluded", False)),
            dependencies=list(dependencies),
            compatible_packages=list(compatible_packages),
            options=list(options),
            fields=dict(data),
        )


@dataclass
class FetchResult:
    """
    Outcome of a public release/asset operation.

    Operations never raise past their boundary; instead they return a result
    whose `error_type` tells true absence (`not_found`) apart from transport
    trouble (`network_failure`) and bad data (`malformed_payload`).
    """

    success: bool
    """Whether the operation produced a value"""

    value: Any = None
    """The produced value (Release, Path, list...) when successful"""

    error_type: Optional[str] = None
    """Category of failure (not_found, network_failure, malformed_payload, ...)"""

    error_message: Optional[str] = None
    """Human-readable failure description"""

    @classmethod
    def ok(cls, value: Any) -> "FetchResult":
        return cls(success=True, value=value)

    @classmethod
    def failure(cls, error_type: str, error_message: str) -> "FetchResult":
        return cls(success=False, error_type=error_type, error_message=error_message)

    @classmethod
    def from_error(cls, error: Exception) -> "FetchResult":
        """
        Map a patchfetch exception onto a failed result.

        Anything that is not one of the known categories is treated as a
        malformed payload, since the transport and filesystem layers raise
        their own typed errors.
        """
        if isinstance(error, ResourceNotFoundError):
            error_type = ERROR_NOT_FOUND
        elif isinstance(error, MissingMappingError):
            error_type = ERROR_MISSING_MAPPING
        elif isinstance(error, VersionNotFoundError):
            error_type = ERROR_VERSION_NOT_FOUND
        elif isinstance(error, DownloadError):
            error_type = ERROR_NETWORK_FAILURE
        elif isinstance(error, FileSystemError):
            error_type = ERROR_FILESYSTEM
        elif isinstance(error, ConfigurationError):
            error_type = ERROR_CONFIGURATION
        else:
            error_type = ERROR_MALFORMED_PAYLOAD
        return cls.failure(error_type, str(error))

    @property
    def is_not_found(self) -> bool:
        return self.error_type == ERROR_NOT_FOUND

    def unwrap_or(self, default: Any) -> Any:
        """Return the value on success and `default` otherwise."""
        return self.value if self.success else default


class SettingsStore(ABC):
    """
    Key-value sink owned by the application layer.

    The release subsystem only reads the installed manager version and records
    resolved download URLs so later calls can skip the release lookup.
    """

    @abstractmethod
    def set_integrations_download_url(self, url: str) -> None:
        """Remember the download URL of the integrations (binary) asset."""

    @abstractmethod
    def set_patches_download_url(self, url: str) -> None:
        """Remember the download URL of the patch catalog asset."""

    @abstractmethod
    def get_current_manager_version(self) -> str:
        """Return the version string of the currently installed manager."""
