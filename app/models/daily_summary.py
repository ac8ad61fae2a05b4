"""
DailySummary — one row per (user, calendar date).

The narrative fields (`summary`, `entry_count`, `mood_quality`,
`dominant_emotions`) come from the transcript pipeline. The reflection fields
(`achievements` … `flashback`, `stats`) are written by the reflection
generator and by user edits; `edited = True` marks them as user-owned.

List and stats columns are JSON.
"""
import datetime as dt
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, Integer, String, Text, UniqueConstraint, Uuid, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class DailySummary(Base):
    __tablename__ = "daily_summaries"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_summaries_user_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    summary: Mapped[str] = mapped_column(Text, nullable=False)
    entry_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    mood_quality: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    dominant_emotions: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)

    achievements: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    commitments: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    mood_overall: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    mood_reason: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    flashback: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    stats: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON, nullable=True,
        comment="Optional entryCount / topEmotions / keywords",
    )

    edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    gen_version: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    last_generated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )
