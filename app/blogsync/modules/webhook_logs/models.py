from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.blogsync.models import Base
from app.blogsync.utils import utcnow


class WebhookLog(Base):
    """One row per inbound webhook call, successful or not."""

    __tablename__ = "webhook_logs"
    __table_args__ = (
        Index("ix_webhook_logs_type_created", "webhook_type", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

    webhook_type: Mapped[str] = mapped_column(String(64), nullable=False)  # e.g. "outrank"
    request_method: Mapped[str] = mapped_column(String(16), nullable=False, default="POST")

    # JSON strings
    request_headers: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_body: Mapped[str | None] = mapped_column(Text, nullable=True)

    response_status: Mapped[int] = mapped_column(Integer, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    processing_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
