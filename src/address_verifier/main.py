"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from address_verifier import __version__
from address_verifier.core.config import Settings, get_settings
from address_verifier.core.database import create_engine, create_session_factory
from address_verifier.core.kv_store import RedisKeyValueStore, create_redis_client
from address_verifier.core.logging import setup_logging
from address_verifier.lib.locality import AusPostLocalityClient
from address_verifier.services.audit_service import AuditLogSink


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create stores and clients on startup, release them on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_dir)

    engine = create_engine(settings.database_url, schema=settings.database_schema)
    session_factory = create_session_factory(engine)
    kv_store = RedisKeyValueStore(create_redis_client(settings.redis_url, settings.redis_token))

    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.kv_store = kv_store
    app.state.locality_client = AusPostLocalityClient(
        settings.locality_api_url,
        settings.locality_api_key,
        timeout=settings.locality_api_timeout,
    )
    app.state.audit_sink = AuditLogSink(engine, session_factory)
    logger.info(f"Address verifier started (environment={settings.environment})")

    yield

    await kv_store.close()
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Address Verifier",
        description="Australian postcode, suburb and state verification",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Register exception handlers
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    # Register middleware and routers
    from address_verifier.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router())

    return app
