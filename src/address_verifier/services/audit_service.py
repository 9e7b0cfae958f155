"""Verification audit log sink and queries.

Writes are a best-effort side channel: :meth:`AuditLogSink.record` reports
failure through its return value and never raises, so a broken log store
cannot change the answer a caller gets.
"""

from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from address_verifier.core.database import ensure_tables
from address_verifier.models.verification_log import VerificationLog
from address_verifier.schemas.verification_log import LogEntry


@dataclass(frozen=True)
class AuditWriteResult:
    """Outcome of a best-effort audit write."""

    ok: bool
    error: str | None = None


class AuditLogSink:
    """Append-only store of verification attempts.

    Args:
        engine: Engine used to provision the log table.
        session_factory: Factory for the sessions that write entries.
    """

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._engine = engine
        self._session_factory = session_factory
        self._ready = False

    async def ensure_ready(self) -> AuditWriteResult:
        """Create the log table if needed. Provisions at most once per sink."""
        if self._ready:
            return AuditWriteResult(ok=True)
        try:
            await ensure_tables(self._engine, [VerificationLog.__table__])
        except SQLAlchemyError as e:
            logger.warning(f"Failed to provision verification log table: {e}")
            return AuditWriteResult(ok=False, error=str(e))
        self._ready = True
        return AuditWriteResult(ok=True)

    async def record(self, entry: LogEntry) -> AuditWriteResult:
        """Append ``entry`` to the log.

        Args:
            entry: The verification attempt to record.

        Returns:
            AuditWriteResult; failures are logged here and need no handling by the caller.
        """
        try:
            async with self._session_factory() as session:
                session.add(VerificationLog(**entry.model_dump()))
                await session.commit()
        except Exception as e:
            logger.exception(f"Failed to write verification log for user {entry.user_id}")
            return AuditWriteResult(ok=False, error=str(e))
        return AuditWriteResult(ok=True)


async def query_verification_logs(
    session: AsyncSession,
    *,
    user_id: str,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[VerificationLog], int]:
    """Query one user's verification logs with optional time bounds.

    Args:
        session: The database session.
        user_id: Owner of the log entries.
        start_time: Filter records at or after this timestamp.
        end_time: Filter records at or before this timestamp.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (log records newest first, total count).
    """
    query = select(VerificationLog).where(VerificationLog.user_id == user_id)
    count_query = select(func.count(VerificationLog.id)).where(VerificationLog.user_id == user_id)

    if start_time is not None:
        query = query.where(VerificationLog.timestamp >= start_time)
        count_query = count_query.where(VerificationLog.timestamp >= start_time)
    if end_time is not None:
        query = query.where(VerificationLog.timestamp <= end_time)
        count_query = count_query.where(VerificationLog.timestamp <= end_time)

    total = (await session.execute(count_query)).scalar_one()

    offset = (page - 1) * page_size
    query = query.order_by(VerificationLog.timestamp.desc()).offset(offset).limit(page_size)
    result = await session.execute(query)
    logs = list(result.scalars().all())

    return logs, total
