"""Verification log Pydantic v2 schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from address_verifier.schemas.common import PaginationMeta


class LogEntry(BaseModel):
    """One verification attempt as written to the audit log sink.

    Field values are the caller's raw input, so they may be invalid or missing
    when the attempt failed schema validation.
    """

    user_id: str
    postcode: str | None = None
    suburb: str | None = None
    state: str | None = None
    timestamp: datetime
    success: bool
    error_message: str | None = None


class VerificationLogResponse(BaseModel):
    """Stored verification log entry."""

    model_config = {"from_attributes": True}

    id: UUID
    user_id: str
    postcode: str | None = None
    suburb: str | None = None
    state: str | None = None
    timestamp: datetime
    success: bool
    error_message: str | None = Field(default=None, description="Failure message; null on success")


class PaginatedVerificationLogResponse(BaseModel):
    """Paginated list of the caller's verification log entries."""

    items: list[VerificationLogResponse]
    pagination: PaginationMeta
