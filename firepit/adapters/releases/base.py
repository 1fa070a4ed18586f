from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ReleaseInfo:
    """Latest published release of the application."""

    tag_name: str
    name: str
    published_at: str | None
    html_url: str | None


class AbstractReleaseClient(ABC):
    """Interface for clients of a public release feed."""

    @abstractmethod
    async def fetch_latest_release(self) -> ReleaseInfo:
        """Fetch the most recent release.

        Raises:
            UpstreamAppError: If the feed cannot be reached or answers with an error.
        """
        ...
