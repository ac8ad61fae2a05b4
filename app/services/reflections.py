"""
Reflection reads and user edits.

Public API
----------
list_daily_reflections(db, user_id, limit, start)   -> list[DailySummary]
list_period_reflections(db, user_id, mode, limit)   -> list[PeriodReflection]
patch_daily_reflection(db, user_id, day, updates)   -> DailySummary
patch_period_reflection(db, user_id, id, updates)   -> PeriodReflection

Edits set `edited = True` and leave gen_version / last_generated_at alone,
so later automatic generations keep the user's text.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ReflectionNotFoundError
from app.models.daily_summary import DailySummary
from app.models.period_reflection import PeriodReflection
from app.services.aggregate import ReflectionMode

logger = logging.getLogger(__name__)


def list_daily_reflections(
    db: Session,
    user_id: str,
    limit: int,
    start: Optional[date] = None,
) -> list[DailySummary]:
    """Newest first; `start` is the latest date to include."""
    q = db.query(DailySummary).filter(DailySummary.user_id == user_id)
    if start is not None:
        q = q.filter(DailySummary.date <= start)
    return q.order_by(DailySummary.date.desc()).limit(limit).all()


def list_period_reflections(
    db: Session,
    user_id: str,
    mode: ReflectionMode,
    limit: int,
) -> list[PeriodReflection]:
    return (
        db.query(PeriodReflection)
        .filter(
            PeriodReflection.user_id == user_id,
            PeriodReflection.period_type == mode.value,
        )
        .order_by(PeriodReflection.period_start.desc())
        .limit(limit)
        .all()
    )


def _apply_edit(db: Session, row, updates: dict[str, Any], what: str):
    for key, value in updates.items():
        setattr(row, key, value)
    row.edited = True
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update %s", what)
        raise
    db.refresh(row)
    return row


def patch_daily_reflection(
    db: Session,
    user_id: str,
    day: date,
    updates: dict[str, Any],
) -> DailySummary:
    row = (
        db.query(DailySummary)
        .filter(DailySummary.user_id == user_id, DailySummary.date == day)
        .first()
    )
    if row is None:
        raise ReflectionNotFoundError("daily", day)
    return _apply_edit(db, row, updates, f"daily reflection {day}")


def patch_period_reflection(
    db: Session,
    user_id: str,
    reflection_id: uuid.UUID,
    updates: dict[str, Any],
) -> PeriodReflection:
    row = (
        db.query(PeriodReflection)
        .filter(
            PeriodReflection.user_id == user_id,
            PeriodReflection.id == reflection_id,
        )
        .first()
    )
    if row is None:
        raise ReflectionNotFoundError("period", reflection_id)
    return _apply_edit(db, row, updates, f"period reflection {reflection_id}")
