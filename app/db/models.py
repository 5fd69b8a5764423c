from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Lead(Base):
    """One row per completed intake. Append-only: never updated or deleted."""

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)  # WhatsApp number
    client_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    client_tax_id: Mapped[Optional[str]] = mapped_column(String(11), nullable=True, index=True)
    client_legal_name: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ProcessedMessage(Base):
    """Idempotency table - stores processed WhatsApp message IDs to prevent duplicates."""

    __tablename__ = "processed_messages"
    __table_args__ = (
        UniqueConstraint("provider", "message_id", name="ix_processed_messages_provider_message_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    provider: Mapped[str] = mapped_column(String(20), default="whatsapp")
    message_id: Mapped[str] = mapped_column(String(255), index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class SystemEvent(Base):
    """Structured record of failures and notable events (delivery, render, lookup)."""

    __tablename__ = "system_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[str] = mapped_column(String(10), index=True)  # INFO, WARN, ERROR
    event_type: Mapped[str] = mapped_column(String(100), index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
