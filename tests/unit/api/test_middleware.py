"""Tests for admin/OAuth app middleware and error handlers."""

from fastapi import FastAPI, Request
from starlette.testclient import TestClient

from mcpgate.api.errors import setup_error_handlers
from mcpgate.api.middleware import RequestIDMiddleware
from mcpgate.errors import create_error


def create_test_app() -> FastAPI:
    """Create a minimal test app."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    setup_error_handlers(app, realm="Test Realm")

    @app.get("/test")
    async def test_endpoint(request: Request) -> dict:
        return {"request_id": getattr(request.state, "request_id", None)}

    @app.get("/needs-auth")
    async def needs_auth() -> dict:
        raise create_error("AUTH_REQUIRED")

    @app.get("/forbidden")
    async def forbidden() -> dict:
        raise create_error("ADMIN_REQUIRED", username="bob")

    @app.get("/crash")
    async def crash() -> dict:
        raise RuntimeError("kaboom")

    return app


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    def test_adds_request_id(self) -> None:
        """Test that middleware adds request ID to request state."""
        client = TestClient(create_test_app())

        response = client.get("/test")
        assert response.status_code == 200
        assert response.json()["request_id"]
        assert response.headers["X-Request-ID"] == response.json()["request_id"]

    def test_uses_provided_request_id(self) -> None:
        """Test that middleware uses provided X-Request-ID header."""
        client = TestClient(create_test_app())

        response = client.get("/test", headers={"X-Request-ID": "custom-request-id-123"})
        assert response.headers["X-Request-ID"] == "custom-request-id-123"
        assert response.json()["request_id"] == "custom-request-id-123"


class TestErrorHandlers:
    """Tests for setup_error_handlers."""

    def test_authentication_failure(self) -> None:
        client = TestClient(create_test_app())

        response = client.get("/needs-auth", headers={"X-Request-ID": "req-1"})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Bearer realm="Test Realm"'
        error = response.json()["error"]
        assert error["code"] == "AUTH_REQUIRED"
        assert error["category"] == "AUTHENTICATION"
        assert error["request_id"] == "req-1"

    def test_authorization_failure_is_403(self) -> None:
        """Test a known caller without the role is not told to log in again."""
        client = TestClient(create_test_app())

        response = client.get("/forbidden")
        assert response.status_code == 403
        assert "WWW-Authenticate" not in response.headers
        assert response.json()["error"]["message"] == "User 'bob' is not an administrator"

    def test_not_found(self) -> None:
        client = TestClient(create_test_app())

        response = client.get("/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_404"

    def test_unexpected_exception(self) -> None:
        client = TestClient(create_test_app(), raise_server_exceptions=False)

        response = client.get("/crash")
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
