"""
Tests for the patchfetch exception hierarchy and its mapping onto FetchResult.
"""

import pytest

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
    APIError,
    ConfigFileError,
    ConfigurationError,
    DownloadError,
    FileSystemError,
    HTTPError,
    MalformedPayloadError,
    MissingMappingError,
    NetworkError,
    PatchfetchError,
    ResourceNotFoundError,
    VersionNotFoundError,
)
from patchfetch.releases.interfaces import FetchResult

pytestmark = [pytest.mark.unit, pytest.mark.infrastructure]


class TestPatchfetchError:
    def test_message_only(self):
        error = PatchfetchError("Something failed")

        assert str(error) == "Something failed"
        assert error.message == "Something failed"
        assert error.details is None

    def test_message_with_details(self):
        error = PatchfetchError("Something failed", details="disk full")

        assert str(error) == "Something failed - disk full"

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            ConfigFileError,
            DownloadError,
            NetworkError,
            HTTPError,
            FileSystemError,
            APIError,
            ResourceNotFoundError,
            MalformedPayloadError,
        ],
    )
    def test_hierarchy(self, error_class):
        assert issubclass(error_class, PatchfetchError)


class TestSpecificErrors:
    def test_http_error_attributes(self):
        error = HTTPError("HTTP error 502", status_code=502, url="https://x", is_retryable=True)

        assert isinstance(error, DownloadError)
        assert error.status_code == 502
        assert error.url == "https://x"
        assert error.is_retryable is True

    def test_config_file_error_keeps_path(self):
        error = ConfigFileError("bad", path="/tmp/patchfetch.yaml")

        assert isinstance(error, ConfigurationError)
        assert error.path == "/tmp/patchfetch.yaml"

    def test_missing_mapping_message(self):
        error = MissingMappingError("com.example.app")

        assert error.package_id == "com.example.app"
        assert "com.example.app" in str(error)

    def test_version_not_found_message(self):
        error = VersionNotFoundError("1.0.0", scanned=30)

        assert str(error) == (
            "Version '1.0.0' not found in recent release history - scanned 30 releases"
        )


class TestFetchResult:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (ResourceNotFoundError("gone"), ERROR_NOT_FOUND),
            (MissingMappingError("com.example.app"), ERROR_MISSING_MAPPING),
            (VersionNotFoundError("1", scanned=0), ERROR_VERSION_NOT_FOUND),
            (NetworkError("reset"), ERROR_NETWORK_FAILURE),
            (HTTPError("HTTP error 500", status_code=500), ERROR_NETWORK_FAILURE),
            (FileSystemError("disk full"), ERROR_FILESYSTEM),
            (ConfigurationError("MANAGER_VERSION is not set"), ERROR_CONFIGURATION),
            (ConfigFileError("bad yaml", path="x.yaml"), ERROR_CONFIGURATION),
            (MalformedPayloadError("bad json"), ERROR_MALFORMED_PAYLOAD),
        ],
    )
    def test_from_error_categories(self, error, expected):
        result = FetchResult.from_error(error)

        assert result.success is False
        assert result.error_type == expected
        assert result.error_message == str(error)
        assert result.value is None

    def test_ok(self):
        result = FetchResult.ok([1, 2])

        assert result.success is True
        assert result.error_type is None
        assert result.unwrap_or([]) == [1, 2]

    def test_unwrap_or_on_failure(self):
        result = FetchResult.failure(ERROR_NOT_FOUND, "missing")

        assert result.unwrap_or("fallback") == "fallback"
        assert result.is_not_found is True
