"""CORS, security headers, and session guard middleware."""

from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from address_verifier.core.config import Settings
from address_verifier.services.session_service import SessionReader

_DEFAULT_TRUSTED_HEADERS = ["X-Forwarded-For"]

GUEST_ONLY_PATHS = frozenset({"/login", "/signup"})
PASS_THROUGH_PREFIXES = ("/api/", "/docs", "/redoc", "/openapi.json")
LOGIN_PATH = "/login"
HOME_PATH = "/"


def get_client_ip(request: Request, trusted_headers: list[str] | None = None) -> str:
    """Extract the client IP from trusted proxy headers.

    Checks headers in priority order. For X-Forwarded-For, uses the
    leftmost (client-supplied) IP.

    Args:
        request: The incoming Starlette request.
        trusted_headers: Ordered list of header names to check.
            Defaults to ["X-Forwarded-For"].

    Returns:
        The client IP address string, or "unknown" if no header carries one.
    """
    headers = trusted_headers if trusted_headers is not None else _DEFAULT_TRUSTED_HEADERS

    for header in headers:
        value = request.headers.get(header, "").strip()
        if not value:
            continue
        # X-Forwarded-For can contain multiple IPs: "client, proxy1, proxy2"
        if header.lower() == "x-forwarded-for":
            return value.split(",")[0].strip() or "unknown"
        return value

    return "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    kwargs: dict[str, Any] = {
        "allow_credentials": True,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }
    if settings.cors_origin_list:
        kwargs["allow_origins"] = settings.cors_origin_list
    app.add_middleware(CORSMiddleware, **kwargs)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def _is_page_navigation(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


class SessionGuardMiddleware(BaseHTTPMiddleware):
    """Redirect browser navigations based on session state.

    Signed-out page navigations go to the login page; signed-in users asking
    for the login or signup page go home.  API and documentation routes are
    left to answer 401 themselves.  Only reads the session store, through
    the :class:`SessionReader` built on ``app.state.kv_store``.
    """

    def __init__(self, app: ASGIApp, cookie_name: str = "session-id") -> None:
        super().__init__(app)
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Apply the guest/member redirects, then continue down the stack.

        Args:
            request: The incoming request.
            call_next: The next middleware/handler.

        Returns:
            A 307 redirect, or the downstream response.
        """
        path = request.url.path
        if path.startswith(PASS_THROUGH_PREFIXES) or path == "/api":
            return await call_next(request)

        is_guest_path = path in GUEST_ONLY_PATHS
        is_navigation = _is_page_navigation(request)
        if not is_navigation and not (is_guest_path and request.method == "GET"):
            return await call_next(request)

        reader = SessionReader(request.app.state.kv_store)
        user = await reader.resolve_session(request.cookies.get(self.cookie_name))

        if user is None and not is_guest_path and is_navigation:
            return RedirectResponse(LOGIN_PATH, status_code=307)
        if user is not None and is_guest_path and request.method == "GET":
            return RedirectResponse(HOME_PATH, status_code=307)
        return await call_next(request)
