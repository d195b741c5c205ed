"""Tests for global exception handlers.

Validates status mapping, the error envelope, rate limit headers on 429s and
that unexpected errors never leak details.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from app.core.errors import AppError, RateLimitAppError, UpstreamAppError, ValidationAppError
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(code="input_required", message="Input is required")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "input_required"
        assert data["error"]["message"] == "Input is required"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_upstream_error_returns_500_with_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-upstream")
        async def endpoint():
            raise UpstreamAppError(
                code="places_upstream_status",
                message="Failed to fetch suggestions",
                details={"upstream_status": 503},
            )

        response = client.get("/test-upstream")

        assert response.status_code == 500
        assert response.json()["error"]["details"] == {"upstream_status": 503}

    def test_rate_limit_error_returns_429_with_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-limited")
        async def endpoint():
            raise RateLimitAppError(
                code="ip-limit",
                message="Too many requests from this IP. Try again in a minute.",
                headers={
                    "X-RateLimit-Limit": "10",
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": "1700000060",
                },
            )

        response = client.get("/test-limited")

        assert response.status_code == 429
        assert response.json()["error"]["message"] == "Too many requests from this IP. Try again in a minute."
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == "1700000060"

    def test_rate_limit_error_without_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-blocked")
        async def endpoint():
            raise RateLimitAppError(code="blocked", message="Too many requests. IP temporarily blocked.")

        response = client.get("/test-blocked")

        assert response.status_code == 429
        assert "X-RateLimit-Limit" not in response.headers

    def test_admitted_headers_attached_to_app_error(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-admitted")
        async def endpoint(request: Request):
            request.state.rate_limit_headers = {"X-RateLimit-Limit": "10", "X-RateLimit-Remaining": "7"}
            raise ValidationAppError(code="input_required", message="Input is required")

        response = client.get("/test-admitted")

        assert response.status_code == 400
        assert response.headers["X-RateLimit-Limit"] == "10"
        assert response.headers["X-RateLimit-Remaining"] == "7"

    def test_denial_headers_win_over_admitted_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-denied-late")
        async def endpoint(request: Request):
            request.state.rate_limit_headers = {"X-RateLimit-Remaining": "3"}
            raise RateLimitAppError(code="blocked", message="Too many requests. IP temporarily blocked.")

        response = client.get("/test-denied-late")

        assert response.status_code == 429
        assert "X-RateLimit-Remaining" not in response.headers

    def test_base_app_error_defaults_to_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-base")
        async def endpoint():
            raise AppError(code="generic", message="generic")

        assert client.get("/test-base").status_code == 400


class TestGeneralExceptionHandler:
    def test_unexpected_exception_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def endpoint():
            raise RuntimeError("socket to upstream exploded")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "exploded" not in response.text

    def test_admitted_headers_attached_to_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-admitted-crash")
        async def endpoint(request: Request):
            request.state.rate_limit_headers = {"X-RateLimit-Remaining": "4"}
            raise RuntimeError("boom")

        response = client.get("/test-admitted-crash")

        assert response.status_code == 500
        assert response.headers["X-RateLimit-Remaining"] == "4"

    def test_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "POST"

        response = asyncio.run(general_exception_handler(request, ValueError("secret detail")))

        body = bytes(response.body).decode()
        data = json.loads(body)
        assert response.status_code == 500
        assert "secret detail" not in body
        assert "Traceback" not in body
        assert "ValueError" not in body
        assert "request_id" in data["error"]


def test_setup_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
