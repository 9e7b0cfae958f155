"""Tests for CORS, security headers, client IP resolution and the session guard."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from address_verifier.api.middleware import SecurityHeadersMiddleware, SessionGuardMiddleware, get_client_ip
from address_verifier.services.session_service import session_key
from tests.conftest import InMemoryKeyValueStore

HTML = {"Accept": "text/html,application/xhtml+xml"}


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app for middleware testing."""
    app = FastAPI()

    @app.get("/test")
    async def test_route() -> dict:
        return {"ok": True}

    @app.get("/")
    async def home() -> dict:
        return {"page": "home"}

    @app.get("/login")
    async def login_page() -> dict:
        return {"page": "login"}

    @app.post("/login")
    async def login_action() -> dict:
        return {"action": "login"}

    @app.get("/api/auth/me")
    async def api_route() -> dict:
        return {"api": True}

    return app


def _make_request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.1", 1234),
    }
    return Request(scope)


class TestGetClientIp:
    """Tests for get_client_ip."""

    def test_leftmost_forwarded_for(self) -> None:
        request = _make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2, 10.0.0.3"})
        assert get_client_ip(request) == "203.0.113.7"

    def test_missing_header_is_unknown(self) -> None:
        assert get_client_ip(_make_request({})) == "unknown"

    def test_blank_header_is_unknown(self) -> None:
        assert get_client_ip(_make_request({"X-Forwarded-For": "  "})) == "unknown"

    def test_header_priority(self) -> None:
        request = _make_request({"CF-Connecting-IP": "198.51.100.1", "X-Forwarded-For": "203.0.113.7"})
        assert get_client_ip(request, ["CF-Connecting-IP", "X-Forwarded-For"]) == "198.51.100.1"

    def test_no_trusted_headers(self) -> None:
        request = _make_request({"X-Forwarded-For": "203.0.113.7"})
        assert get_client_ip(request, []) == "unknown"


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = _create_test_app()
        app.add_middleware(SecurityHeadersMiddleware)
        return TestClient(app)

    def test_all_security_headers_present(self, client: TestClient) -> None:
        response = client.get("/test")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]


class TestSessionGuardMiddleware:
    """Tests for SessionGuardMiddleware."""

    @pytest.fixture
    def store(self) -> InMemoryKeyValueStore:
        return InMemoryKeyValueStore()

    @pytest.fixture
    def client(self, store: InMemoryKeyValueStore) -> TestClient:
        app = _create_test_app()
        app.state.kv_store = store
        app.add_middleware(SessionGuardMiddleware, cookie_name="session-id")
        return TestClient(app, follow_redirects=False)

    @pytest.fixture
    def signed_in(self, client: TestClient, store: InMemoryKeyValueStore) -> TestClient:
        asyncio.run(store.set(session_key("tok"), '{"id": "u1", "name": "Jane"}', ttl_seconds=60))
        client.cookies.set("session-id", "tok")
        return client

    def test_signed_out_navigation_redirects_to_login(self, client: TestClient) -> None:
        response = client.get("/", headers=HTML)
        assert response.status_code == 307
        assert response.headers["location"] == "/login"

    def test_signed_out_login_page_allowed(self, client: TestClient) -> None:
        response = client.get("/login", headers=HTML)
        assert response.status_code == 200

    def test_stale_cookie_treated_as_signed_out(self, client: TestClient) -> None:
        client.cookies.set("session-id", "expired")
        response = client.get("/", headers=HTML)
        assert response.status_code == 307
        assert response.headers["location"] == "/login"

    def test_non_html_request_passes_through(self, client: TestClient) -> None:
        response = client.get("/test", headers={"Accept": "application/json"})
        assert response.status_code == 200

    def test_api_navigation_passes_through(self, client: TestClient) -> None:
        response = client.get("/api/auth/me", headers=HTML)
        assert response.status_code == 200

    def test_signed_in_navigation_allowed(self, signed_in: TestClient) -> None:
        response = signed_in.get("/", headers=HTML)
        assert response.status_code == 200

    def test_signed_in_login_page_redirects_home(self, signed_in: TestClient) -> None:
        response = signed_in.get("/login", headers=HTML)
        assert response.status_code == 307
        assert response.headers["location"] == "/"

    def test_signed_in_login_post_not_redirected(self, signed_in: TestClient) -> None:
        response = signed_in.post("/login")
        assert response.status_code == 200
