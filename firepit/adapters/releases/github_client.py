"""GitHub releases adapter."""

from __future__ import annotations

import logging

import httpx

from firepit.adapters.releases.base import AbstractReleaseClient, ReleaseInfo
from firepit.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)


class GitHubReleaseClient(AbstractReleaseClient):
    """Reads ``/repos/{owner}/{repo}/releases/latest`` from the GitHub REST API.

    A new ``httpx.AsyncClient`` is opened per call; the version check is
    cached upstream so calls are rare.
    """

    def __init__(
        self,
        *,
        repo_owner: str,
        repo_name: str,
        api_base_url: str = "https://api.github.com",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            repo_owner: Owner of the repository publishing releases.
            repo_name: Repository name.
            api_base_url: GitHub REST API base URL.
            timeout_seconds: Timeout for requests in seconds.
            transport: Optional httpx transport (used by tests to mock the API).
        """
        self.repo_owner = repo_owner
        self.repo_name = repo_name
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def latest_release_url(self) -> str:
        return f"{self.api_base_url}/repos/{self.repo_owner}/{self.repo_name}/releases/latest"

    async def fetch_latest_release(self) -> ReleaseInfo:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "Firepit-App",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(self.latest_release_url, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(
                "releases.fetch_failed",
                extra={"error_type": type(exc).__name__, "repo": self.repo_name},
            )
            raise UpstreamAppError(
                code="release_feed_unreachable",
                message=f"GitHub API request failed: {type(exc).__name__}",
            ) from exc

        if response.status_code >= 400:
            logger.warning(
                "releases.fetch_failed",
                extra={"upstream_status": response.status_code, "repo": self.repo_name},
            )
            raise UpstreamAppError(
                code="release_feed_error",
                message=f"GitHub API error: {response.status_code}",
                details={"upstream_status": response.status_code},
            )

        try:
            payload = response.json()
            tag_name = str(payload["tag_name"])
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamAppError(
                code="release_feed_invalid",
                message="GitHub API returned an unexpected payload",
            ) from exc

        return ReleaseInfo(
            tag_name=tag_name,
            name=str(payload.get("name") or tag_name),
            published_at=payload.get("published_at"),
            html_url=payload.get("html_url"),
        )
