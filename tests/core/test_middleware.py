"""Tests for RequestContextMiddleware."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from adboard.core.context import get_context
from adboard.core.middleware import RequestContextMiddleware


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware, log_requests=True)

    @app.get("/context")
    async def context() -> dict:
        return get_context()

    return app


class TestRequestContextMiddleware:
    def test_generates_request_id(self):
        response = TestClient(_app()).get("/context")

        rid = response.headers["X-Request-ID"]
        assert len(rid) == 32
        assert response.json()["request_id"] == rid

    def test_binds_headers(self):
        """Should expose incoming IDs to the handler."""
        response = TestClient(_app()).get(
            "/context",
            headers={
                "X-Request-ID": "req-1",
                "X-Author-ID": "0xabc",
                "X-Correlation-ID": "corr-1",
                "traceparent": "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01",
            },
        )

        assert response.json() == {
            "request_id": "req-1",
            "author_id": "0xabc",
            "correlation_id": "corr-1",
            "trace_id": "4bf92f3577b34da6a3ce929d0e0e4736",
        }

    def test_excluded_path_helper(self):
        middleware = RequestContextMiddleware(FastAPI(), exclude_paths=["/health"])

        assert middleware._should_exclude("/health/live")
        assert not middleware._should_exclude("/api/v1/comments")
