"""Factory for the release feed client."""

from firepit.adapters.releases.base import AbstractReleaseClient
from firepit.adapters.releases.github_client import GitHubReleaseClient
from firepit.core.config import settings


def create_release_client() -> AbstractReleaseClient:
    """Build the release client from ``settings.releases``."""
    cfg = settings.releases
    return GitHubReleaseClient(
        repo_owner=cfg.repo_owner,
        repo_name=cfg.repo_name,
        api_base_url=cfg.api_base_url,
        timeout_seconds=cfg.timeout_seconds,
    )
