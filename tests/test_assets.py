import pytest

from patchfetch.releases.assets import select_asset
from patchfetch.releases.interfaces import Asset, Release

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]


def _release(*names):
    return Release(
        tag_name="v1.0.0",
        assets=[Asset(name=n, download_url=f"https://dl.example.test/{n}") for n in names],
    )


def test_matching_asset_is_selected():
    asset = select_asset(_release("a.json", "b.apk"), ".apk")

    assert asset is not None
    assert asset.name == "b.apk"


def test_first_match_wins():
    asset = select_asset(_release("first.apk", "second.apk"), ".apk")

    assert asset.name == "first.apk"


def test_no_match_returns_none():
    assert select_asset(_release("a.json", "b.apk"), ".zip") is None


def test_missing_release_returns_none():
    assert select_asset(None, ".apk") is None


def test_release_without_assets_returns_none():
    assert select_asset(_release(), ".json") is None


def test_match_is_case_sensitive():
    assert select_asset(_release("APP.APK"), ".apk") is None


def test_selection_is_repeatable():
    release = _release("a.json", "b.apk")

    assert select_asset(release, ".json") is select_asset(release, ".json")
