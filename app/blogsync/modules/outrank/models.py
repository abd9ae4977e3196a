from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.blogsync.models import Base
from app.blogsync.utils import utcnow

# Single-row table; the admin API always reads/writes this id.
CONFIG_ROW_ID = 1


class OutrankConfig(Base):
    __tablename__ = "outrank_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    webhook_secret: Mapped[str | None] = mapped_column(Text, nullable=True)
    auto_publish: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    last_sync: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    total_synced: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow, onupdate=utcnow)
