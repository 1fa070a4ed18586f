"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from firepit.core.errors import (
    AppError,
    AuthenticationAppError,
    NotFoundAppError,
    PermissionDeniedAppError,
    RateLimitedAppError,
    UpstreamAppError,
    ValidationAppError,
)
from firepit.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_code_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


def _body(response) -> dict:
    raw = response.body if isinstance(response.body, bytes) else bytes(response.body)
    return json.loads(raw.decode())


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(code="unknown_permission", message="Unknown permission(s): x")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "unknown_permission"
        assert data["error"]["message"] == "Unknown permission(s): x"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise NotFoundAppError(
                code="role_not_found",
                message="Role not found",
                details={"server_id": "srv-1", "role_id": "r-9"},
            )

        response = client.get("/test-details")

        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"server_id": "srv-1", "role_id": "r-9"}

    @pytest.mark.parametrize(
        "error_type,expected_status",
        [
            (ValidationAppError, 400),
            (AuthenticationAppError, 401),
            (PermissionDeniedAppError, 403),
            (NotFoundAppError, 404),
            (RateLimitedAppError, 429),
            (UpstreamAppError, 502),
            (AppError, 400),
        ],
    )
    def test_status_mapping(self, error_type: type[AppError], expected_status: int):
        assert status_code_for(error_type(code="x", message="y")) == expected_status

    def test_rate_limited_error_returns_429_with_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate-limited")
        async def test_endpoint():
            raise RateLimitedAppError(
                code="rate_limit_exceeded",
                message="Too many requests, please try again later",
                details={"retry_after": 12},
                headers={"Retry-After": "12"},
            )

        response = client.get("/test-rate-limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert response.json()["error"]["details"] == {"retry_after": 12}

    def test_upstream_error_returns_502(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-upstream")
        async def test_endpoint():
            raise UpstreamAppError(code="release_feed_error", message="GitHub API error: 500")

        response = client.get("/test-upstream")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "release_feed_error"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: role store connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = _body(response)
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "role store" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("boom")))

        response_text = json.dumps(_body(response))
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text

    def test_unexpected_exception_through_app(self, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("secret internals")

        client = TestClient(app_with_handlers, raise_server_exceptions=False)
        response = client.get("/test-crash")

        assert response.status_code == 500
        assert "secret internals" not in response.text


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
