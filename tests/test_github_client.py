"""Tests for the GitHub release client using httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from firepit.adapters.releases.github_client import GitHubReleaseClient
from firepit.core.errors import UpstreamAppError


def _client(handler) -> GitHubReleaseClient:
    return GitHubReleaseClient(
        repo_owner="acarlson33",
        repo_name="firepit",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_fetches_latest_release() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "tag_name": "v1.4.0",
                "name": "Ember",
                "published_at": "2026-03-01T12:00:00Z",
                "html_url": "https://github.com/acarlson33/firepit/releases/tag/v1.4.0",
            },
        )

    release = await _client(handler).fetch_latest_release()

    assert release.tag_name == "v1.4.0"
    assert release.name == "Ember"
    assert release.published_at == "2026-03-01T12:00:00Z"
    assert str(seen[0].url) == (
        "https://api.github.com/repos/acarlson33/firepit/releases/latest"
    )
    assert seen[0].headers["User-Agent"] == "Firepit-App"
    assert seen[0].headers["Accept"] == "application/vnd.github.v3+json"


@pytest.mark.asyncio
async def test_missing_name_falls_back_to_tag() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"tag_name": "v2.0.0"})

    release = await _client(handler).fetch_latest_release()

    assert release.name == "v2.0.0"
    assert release.html_url is None


@pytest.mark.asyncio
async def test_error_status_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "API rate limit exceeded"})

    with pytest.raises(UpstreamAppError) as exc_info:
        await _client(handler).fetch_latest_release()

    assert exc_info.value.code == "release_feed_error"
    assert exc_info.value.message == "GitHub API error: 403"
    assert exc_info.value.details == {"upstream_status": 403}


@pytest.mark.asyncio
async def test_network_failure_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamAppError) as exc_info:
        await _client(handler).fetch_latest_release()

    assert exc_info.value.code == "release_feed_unreachable"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [b"not json", b"{}", b"[]"])
async def test_unexpected_payload_raises_upstream_error(content: bytes) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=content)

    with pytest.raises(UpstreamAppError) as exc_info:
        await _client(handler).fetch_latest_release()

    assert exc_info.value.code == "release_feed_invalid"
