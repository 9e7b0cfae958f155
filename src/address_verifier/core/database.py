"""Async database engine and session factory construction.

The engine and session factory are created once in the application lifespan
and stored on ``app.state``; nothing in this module holds global state.
"""

from collections.abc import Sequence

from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from address_verifier.models.base import Base


def create_engine(database_url: str, *, schema: str | None = None, **kwargs: object) -> AsyncEngine:
    """Create the async engine for the credential store and verification logs.

    Args:
        database_url: Async connection string (asyncpg or aiosqlite).
        schema: Optional PostgreSQL schema; tables are resolved through its search_path.
        **kwargs: Additional arguments passed to create_async_engine.

    Returns:
        The created async engine.
    """
    if schema is not None:
        connect_args = kwargs.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        # asyncpg takes session parameters through server_settings
        server_settings = connect_args.setdefault("server_settings", {})
        server_settings["search_path"] = f"{schema},public"
        kwargs["connect_args"] = connect_args
    uses_static_pool = kwargs.get("poolclass") is StaticPool or "sqlite" in database_url
    if not uses_static_pool:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
    return create_async_engine(database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the per-request session factory bound to ``engine``."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def ensure_tables(engine: AsyncEngine, tables: Sequence[Table]) -> None:
    """Create ``tables`` if they do not exist yet (idempotent)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=list(tables), checkfirst=True)
