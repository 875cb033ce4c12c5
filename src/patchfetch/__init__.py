"""Release resolution and asset caching for a GitHub-style release feed."""

from patchfetch.resolver import ReleaseResolver

__all__ = ["ReleaseResolver"]
