"""Release feed adapters used by the version check."""

from firepit.adapters.releases.base import AbstractReleaseClient, ReleaseInfo
from firepit.adapters.releases.factory import create_release_client
from firepit.adapters.releases.github_client import GitHubReleaseClient

__all__ = [
    "AbstractReleaseClient",
    "GitHubReleaseClient",
    "ReleaseInfo",
    "create_release_client",
]
