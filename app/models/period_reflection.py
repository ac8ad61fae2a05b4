"""
PeriodReflection — weekly / monthly reflection for a user.

period_type values:
  "weekly"   — period_start is a Monday, period_end the following Sunday
  "monthly"  — period_start is the 1st, period_end the last day of the month

Uniqueness: (user_id, period_type, period_start). Generation upserts on that key.
"""
import uuid
from datetime import datetime, date
from typing import Any, Optional

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, String, UniqueConstraint, Uuid, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class PeriodReflection(Base):
    __tablename__ = "period_reflections"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "period_type", "period_start",
            name="uq_period_reflections_user_type_start",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    period_type: Mapped[str] = mapped_column(
        String(16), nullable=False, index=True,
        comment='"weekly" or "monthly"',
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    achievements: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    commitments: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    mood_overall: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    mood_reason: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    flashback: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    stats: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

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
