"""VerificationLog model: one immutable row per address verification attempt."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from address_verifier.models.base import Base, UUIDMixin


class VerificationLog(Base, UUIDMixin):
    """Append-only audit record of an address verification. Never updated or deleted."""

    __tablename__ = "verification_logs"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    postcode: Mapped[str | None] = mapped_column(Text, nullable=True)
    suburb: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
