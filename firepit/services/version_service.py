"""Version check against the public release feed."""

from __future__ import annotations

import logging
import re

from firepit.adapters.releases.base import AbstractReleaseClient, ReleaseInfo
from firepit.core.errors import UpstreamAppError
from firepit.schemas.requests import VersionInfo
from firepit.utils.request_cache import CacheTTL, RequestCache

logger = logging.getLogger(__name__)

LATEST_RELEASE_CACHE_KEY = "github-latest-release"

_LEADING_DIGITS = re.compile(r"^\d+")


def _version_parts(version: str) -> list[int]:
    parts = []
    for chunk in version.strip().lstrip("vV").split("."):
        match = _LEADING_DIGITS.match(chunk)
        parts.append(int(match.group()) if match else 0)
    return parts


def is_version_outdated(current: str, latest: str) -> bool:
    """Return True if ``current`` is older than ``latest``.

    Versions are compared numerically part by part; a leading ``v`` is
    ignored and missing parts count as zero.

    Examples:
        >>> is_version_outdated("1.0.0", "v1.2.0")
        True
        >>> is_version_outdated("1.10", "1.9.9")
        False
    """
    current_parts = _version_parts(current)
    latest_parts = _version_parts(latest)
    width = max(len(current_parts), len(latest_parts))
    current_parts += [0] * (width - len(current_parts))
    latest_parts += [0] * (width - len(latest_parts))
    return latest_parts > current_parts


class VersionService:
    def __init__(
        self,
        client: AbstractReleaseClient,
        cache: RequestCache,
        *,
        current_version: str,
        ttl_ms: int = CacheTTL.RELEASES,
    ) -> None:
        self._client = client
        self._cache = cache
        self._current_version = current_version
        self._ttl_ms = ttl_ms

    async def get_version_info(self) -> VersionInfo:
        """Compare the running version with the latest release.

        The release lookup goes through the request cache so concurrent
        callers share one upstream call. When the feed fails the running
        version is reported with ``latest_version="unknown"`` and the error.
        """
        try:
            release: ReleaseInfo = await self._cache.dedupe(
                LATEST_RELEASE_CACHE_KEY,
                self._client.fetch_latest_release,
                self._ttl_ms,
            )
        except UpstreamAppError as exc:
            logger.warning("version.check_failed", extra={"error_code": exc.code})
            return VersionInfo(
                current_version=self._current_version,
                latest_version="unknown",
                is_outdated=False,
                error=exc.message,
            )

        return VersionInfo(
            current_version=self._current_version,
            latest_version=release.tag_name,
            is_outdated=is_version_outdated(self._current_version, release.tag_name),
            release_url=release.html_url,
            published_at=release.published_at,
        )
