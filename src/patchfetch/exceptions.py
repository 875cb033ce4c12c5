"""
Custom exceptions for patchfetch.

Public release/asset operations never raise these past their boundary; they are
caught, logged and turned into FetchResult failures. They exist so that the
internal layers (settings store, cache, transport) can signal failures with a
precise category.
"""


class PatchfetchError(Exception):
    """
    Base exception for all patchfetch errors.

    All custom exceptions in patchfetch inherit from this class to allow for
    easy catching of all package-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PatchfetchError):
    """Exception raised when configuration is invalid or missing."""

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the settings file cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(PatchfetchError):
    """
    Base exception for download-related errors.

    Attributes:
        url: The URL that was being downloaded when the error occurred.
        is_retryable: Whether the error could be retried.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        is_retryable: bool = False,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.is_retryable = is_retryable


class NetworkError(DownloadError):
    """Exception raised for transport-level failures (DNS, connection, TLS, timeouts)."""

    pass


class HTTPError(DownloadError):
    """
    Exception raised when the server answers with an error status.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        is_retryable: bool = False,
        details: str | None = None,
    ) -> None:
        super().__init__(message, url, is_retryable, details)
        self.status_code = status_code


# =============================================================================
# File System Errors
# =============================================================================


class FileSystemError(PatchfetchError):
    """Exception raised when the on-disk cache cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# API Errors
# =============================================================================


class APIError(PatchfetchError):
    """
    Exception raised for release feed API errors.

    Attributes:
        endpoint: The API endpoint that was accessed.
        status_code: The HTTP status code returned, if any.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class ResourceNotFoundError(APIError):
    """Exception raised when a release, tag or asset does not exist."""

    pass


class MalformedPayloadError(APIError):
    """Exception raised when a feed response or catalog document has an unexpected shape."""

    pass


class MissingMappingError(PatchfetchError):
    """Exception raised when a package identifier has no known patches source path."""

    def __init__(self, package_id: str) -> None:
        super().__init__(
            f"No patches source path mapped for package {package_id!r}"
        )
        self.package_id = package_id


class VersionNotFoundError(PatchfetchError):
    """Exception raised when the installed version is missing from the recent release page."""

    def __init__(self, version: str, scanned: int) -> None:
        super().__init__(
            f"Version {version!r} not found in recent release history",
            details=f"scanned {scanned} releases",
        )
        self.version = version
        self.scanned = scanned
