"""API routers and middleware registration."""

from fastapi import APIRouter, FastAPI

from address_verifier.api.middleware import SecurityHeadersMiddleware, SessionGuardMiddleware, setup_cors
from address_verifier.core.config import Settings

API_PREFIX = "/api"


def create_router() -> APIRouter:
    """Create the root router: form actions at the top level, JSON endpoints under /api.

    Returns:
        Configured router.
    """
    from address_verifier.api.v1.auth import form_router
    from address_verifier.api.v1.auth import router as auth_router
    from address_verifier.api.v1.verification import verification_router

    api_router = APIRouter(prefix=API_PREFIX)
    api_router.include_router(auth_router)
    api_router.include_router(verification_router)

    root_router = APIRouter()
    root_router.include_router(form_router)
    root_router.include_router(api_router)
    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    app.add_middleware(SessionGuardMiddleware, cookie_name=settings.session_cookie_name)
    app.add_middleware(SecurityHeadersMiddleware)
    setup_cors(app, settings)
