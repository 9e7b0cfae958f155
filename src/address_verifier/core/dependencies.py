"""FastAPI dependency injection for stores, sessions and the verification pipeline.

Long-lived resources (engine, session factory, key-value store, locality
client, audit sink) are created in the application lifespan and read from
``app.state``; everything per-request is built here.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from address_verifier.core.config import Settings
from address_verifier.core.kv_store import KeyValueStore
from address_verifier.lib.locality import BaseLocalityClient
from address_verifier.lib.verifier import messages
from address_verifier.schemas.auth import UserSession
from address_verifier.services.audit_service import AuditLogSink
from address_verifier.services.rate_limiter import SlidingWindowRateLimiter
from address_verifier.services.session_service import SessionManager
from address_verifier.services.verification_service import AddressVerificationPipeline


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = request.app.state.session_factory
    async with factory() as session:
        yield session


def get_kv_store(request: Request) -> KeyValueStore:
    return request.app.state.kv_store


def get_locality_client(request: Request) -> BaseLocalityClient:
    return request.app.state.locality_client


def get_audit_sink(request: Request) -> AuditLogSink:
    return request.app.state.audit_sink


def get_session_manager(
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[KeyValueStore, Depends(get_kv_store)],
) -> SessionManager:
    """Build the session manager for the configured cookie and TTL."""
    return SessionManager(
        store,
        cookie_name=settings.session_cookie_name,
        ttl_seconds=settings.session_ttl_seconds,
        secure_cookie=settings.is_production,
    )


def get_session_token(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> str | None:
    """Return the raw session cookie value, if any."""
    return request.cookies.get(settings.session_cookie_name)


async def get_current_user_session(
    token: Annotated[str | None, Depends(get_session_token)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> UserSession | None:
    """Resolve the caller's session. Never raises for "not logged in"."""
    return await manager.resolve_session(token)


async def require_user_session(
    user: Annotated[UserSession | None, Depends(get_current_user_session)],
) -> UserSession:
    """Return the caller's session.

    Raises:
        HTTPException: 401 if there is no valid session.
    """
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=messages.UNAUTHORIZED)
    return user


def get_rate_limiter(
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[KeyValueStore, Depends(get_kv_store)],
) -> SlidingWindowRateLimiter:
    """Build the verification rate limiter for the current environment's quota."""
    return SlidingWindowRateLimiter(
        store,
        limit=settings.effective_rate_limit,
        window_seconds=settings.rate_limit_window_seconds,
    )


def get_verification_pipeline(
    rate_limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    manager: Annotated[SessionManager, Depends(get_session_manager)],
    locality_client: Annotated[BaseLocalityClient, Depends(get_locality_client)],
    audit_sink: Annotated[AuditLogSink, Depends(get_audit_sink)],
) -> AddressVerificationPipeline:
    return AddressVerificationPipeline(
        rate_limiter=rate_limiter,
        session_reader=manager,
        locality_client=locality_client,
        audit_sink=audit_sink,
    )
