"""Tests for the version check service."""

import asyncio

import pytest

from firepit.services.version_service import (
    LATEST_RELEASE_CACHE_KEY,
    VersionService,
    is_version_outdated,
)
from firepit.utils.request_cache import RequestCache
from tests.conftest import FakeReleaseClient, FakeTime


@pytest.mark.parametrize(
    "current,latest,expected",
    [
        ("1.0.0", "v1.2.0", True),
        ("1.2.0", "1.2.0", False),
        ("1.2.0", "v1.1.9", False),
        ("1.9", "1.10", True),
        ("1.10", "1.9.9", False),
        ("1.2", "1.2.0", False),
        ("V2.0.0", "v2.0.1", True),
        ("1.0.0-beta", "1.0.0", False),
    ],
)
def test_is_version_outdated(current: str, latest: str, expected: bool) -> None:
    assert is_version_outdated(current, latest) is expected


@pytest.mark.asyncio
async def test_concurrent_checks_share_one_fetch() -> None:
    client = FakeReleaseClient("v1.2.0")
    service = VersionService(client, RequestCache(), current_version="1.2.0", ttl_ms=60_000)

    results = await asyncio.gather(*(service.get_version_info() for _ in range(5)))

    assert client.calls == 1
    assert all(r.latest_version == "v1.2.0" for r in results)
    assert all(r.is_outdated is False for r in results)


@pytest.mark.asyncio
async def test_release_refetched_after_ttl(fake_time: FakeTime) -> None:
    client = FakeReleaseClient("v1.2.0")
    cache = RequestCache(clock=fake_time.time)
    service = VersionService(client, cache, current_version="1.0.0", ttl_ms=1000)

    await service.get_version_info()
    fake_time.advance(1)
    await service.get_version_info()

    assert client.calls == 2


@pytest.mark.asyncio
async def test_failure_reports_unknown_and_is_not_cached() -> None:
    client = FakeReleaseClient(fail=True)
    cache = RequestCache()
    service = VersionService(client, cache, current_version="1.0.0", ttl_ms=60_000)

    info = await service.get_version_info()

    assert info.current_version == "1.0.0"
    assert info.latest_version == "unknown"
    assert info.is_outdated is False
    assert info.error == "GitHub API error: 503"
    assert cache.has(LATEST_RELEASE_CACHE_KEY) is False

    client.fail = False
    recovered = await service.get_version_info()

    assert recovered.latest_version == "v1.2.0"
    assert recovered.is_outdated is True
    assert recovered.model_dump(by_alias=True)["isOutdated"] is True
