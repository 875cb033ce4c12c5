"""Asset selection within a single release."""

from typing import Optional

from .interfaces import Asset, Release


def select_asset(release: Optional[Release], required_suffix: str) -> Optional[Asset]:
    """
    Pick the first asset of `release` whose name ends with `required_suffix`.

    Assets are scanned in the order the feed returned them and the comparison is
    a plain case-sensitive suffix match. Only the given release is searched.

    Parameters:
        release (Optional[Release]): The release to search; `None` yields `None`.
        required_suffix (str): File name suffix such as ".apk" or ".json".

    Returns:
        Optional[Asset]: The matching asset, or `None` when nothing matches.
    """
    if release is None:
        return None
    return next(
        (asset for asset in release.assets if asset.name.endswith(required_suffix)),
        None,
    )
