from unittest.mock import AsyncMock, Mock

import aiohttp
import platformdirs
import pytest

from patchfetch.exceptions import ConfigurationError
from patchfetch.releases.interfaces import SettingsStore
from tests.async_test_utils import FakeClock, make_async_iter

_ASYNC_NETWORK_BLOCK_MSG = (
    "Async network access is blocked during tests. Mock aiohttp.ClientSession."
)

API_BASE = "https://api.example.test"


async def _async_block_network(*_args, **_kwargs):
    """
    Prevent async network calls during tests by raising a RuntimeError.

    Raises:
        RuntimeError: `_ASYNC_NETWORK_BLOCK_MSG` explaining that async network access is blocked.
    """
    raise RuntimeError(_ASYNC_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    for marker in (
        "unit: fast isolated tests",
        "core_downloads: release lookup, asset and cache tests",
        "infrastructure: logging, settings and error plumbing tests",
    ):
        config.addinivalue_line("markers", marker)


def pytest_runtest_setup():
    """Replace aiohttp entry points so no test can reach the network."""
    aiohttp.request = _async_block_network
    aiohttp.ClientSession._request = _async_block_network  # type: ignore[assignment]


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs cache and config lookups into a per-test temporary tree.
    """
    base = tmp_path_factory.mktemp("patchfetch")
    cache_dir = base / "cache"
    config_dir = base / "config"
    for path in (cache_dir, config_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )


# =============================================================================
# Fake feed fixtures
# =============================================================================


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_response():
    """
    Provide a factory for mocked aiohttp responses usable with `async with`.

    Parameters of the factory:
        status (int): HTTP status code.
        json_data (Any): Value returned by `await response.json()`.
        chunks (list[bytes] | None): Body chunks served by `content.iter_chunked`.
        json_error (Exception | None): Raised by `json()` instead of returning data.
    """

    def _create_response(status=200, json_data=None, chunks=None, json_error=None):
        response = AsyncMock()
        response.status = status
        response.headers = {}
        if json_error is not None:
            response.json = AsyncMock(side_effect=json_error)
        else:
            response.json = AsyncMock(return_value=json_data)

        if status >= 400:
            response.raise_for_status = Mock(
                side_effect=aiohttp.ClientResponseError(
                    request_info=Mock(),
                    history=(),
                    status=status,
                    message="error",
                )
            )
        else:
            response.raise_for_status = Mock()

        if chunks is not None:
            response.headers = {"Content-Length": str(sum(len(c) for c in chunks))}
            response.content = Mock()
            response.content.iter_chunked = Mock(
                side_effect=lambda _size: make_async_iter(chunks)
            )

        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=False)
        return response

    return _create_response


@pytest.fixture
def make_session():
    """
    Provide a factory for mocked aiohttp sessions routing GET requests by URL.

    `routes` maps a full URL to a response (from `make_response`) or to an
    exception instance that `session.get` raises. Unknown URLs raise
    `aiohttp.ClientConnectionError`. Every call is recorded on `session.calls`
    as `(url, params)`.
    """

    def _create_session(routes):
        session = AsyncMock()
        session.closed = False
        session.calls = []

        def _get(url, params=None):
            session.calls.append((url, params))
            target = routes.get(url)
            if target is None:
                raise aiohttp.ClientConnectionError(f"no route for {url}")
            if isinstance(target, Exception):
                raise target
            return target

        session.get = Mock(side_effect=_get)
        return session

    return _create_session


@pytest.fixture
def make_client(fake_clock):
    """Build an AsyncGitHubClient bound to API_BASE that uses the given mocked session."""
    from patchfetch.releases import AsyncGitHubClient, HttpResponseCache

    def _create_client(session, max_stale_seconds=60):
        client = AsyncGitHubClient(
            API_BASE,
            http_cache=HttpResponseCache(max_stale_seconds, clock=fake_clock),
        )
        client._session = session
        return client

    return _create_client


@pytest.fixture
def sample_release_data():
    """Three manager releases, newest first."""
    return [
        {
            "tag_name": "v3.0.0",
            "name": "v3.0.0",
            "prerelease": False,
            "published_at": "2024-03-01T00:00:00Z",
            "body": "Third release notes",
            "assets": [
                {
                    "name": "patches.json",
                    "browser_download_url": "https://dl.example.test/v3/patches.json",
                    "size": 2048,
                    "content_type": "application/json",
                },
                {
                    "name": "app-release.apk",
                    "browser_download_url": "https://dl.example.test/v3/app-release.apk",
                    "size": 4096,
                    "content_type": "application/vnd.android.package-archive",
                },
            ],
        },
        {
            "tag_name": "v2.0.0",
            "name": "v2.0.0",
            "prerelease": False,
            "published_at": "2024-02-01T00:00:00Z",
            "body": "Second release notes",
            "assets": [
                {
                    "name": "app-release.apk",
                    "browser_download_url": "https://dl.example.test/v2/app-release.apk",
                    "size": 4000,
                },
            ],
        },
        {
            "tag_name": "v1.0.0",
            "name": "v1.0.0",
            "prerelease": False,
            "published_at": "2024-01-01T00:00:00Z",
            "body": "First release notes",
            "assets": [],
        },
    ]


@pytest.fixture
def sample_patch_catalog():
    return [
        {
            "name": "Hide ads",
            "description": "Removes ads.",
            "version": "0.0.1",
            "excluded": False,
            "dependencies": ["integrations"],
            "compatiblePackages": [
                {"name": "com.google.android.youtube", "versions": ["18.45.43"]}
            ],
            "options": [],
        },
        {
            "name": "Custom branding",
            "excluded": True,
            "compatiblePackages": [],
        },
    ]


class InMemorySettings(SettingsStore):
    """SettingsStore double that keeps values in a dict."""

    def __init__(self, manager_version=None):
        self.values = {}
        if manager_version is not None:
            self.values["manager_version"] = manager_version

    def set_integrations_download_url(self, url):
        self.values["integrations_download_url"] = url

    def set_patches_download_url(self, url):
        self.values["patches_download_url"] = url

    def get_current_manager_version(self):
        if "manager_version" not in self.values:
            raise ConfigurationError("manager_version is not set")
        return self.values["manager_version"]


@pytest.fixture
def memory_settings():
    return InMemorySettings()
