"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports ``firepit.core.config``
so settings resolve to test values.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_CURRENT_VERSION", "1.0.0")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from firepit.adapters.releases.base import AbstractReleaseClient, ReleaseInfo
from firepit.core.app_factory import create_app
from firepit.core.errors import UpstreamAppError


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def time(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeReleaseClient(AbstractReleaseClient):
    """Release client returning a canned release (or failing) and counting calls."""

    def __init__(self, tag_name: str = "v1.2.0", *, fail: bool = False) -> None:
        self.tag_name = tag_name
        self.fail = fail
        self.calls = 0

    async def fetch_latest_release(self) -> ReleaseInfo:
        self.calls += 1
        if self.fail:
            raise UpstreamAppError(code="release_feed_error", message="GitHub API error: 503")
        return ReleaseInfo(
            tag_name=self.tag_name,
            name=f"Release {self.tag_name}",
            published_at="2026-01-15T10:00:00Z",
            html_url=f"https://github.com/acarlson33/firepit/releases/tag/{self.tag_name}",
        )


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def release_client() -> FakeReleaseClient:
    return FakeReleaseClient()


@pytest.fixture
def app(release_client: FakeReleaseClient) -> FastAPI:
    """Fresh app per test so limiter, cache and store state never leak."""
    return create_app(release_client=release_client)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
