"""
Daily summary ingest.

The transcript pipeline produces one narrative summary per user per day and
hands it here. The upsert touches only the narrative columns; reflection
fields and the `edited` flag belong to the generator and to user edits.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.daily_summary import DailySummary

logger = logging.getLogger(__name__)


def _find(db: Session, user_id: str, day: date) -> Optional[DailySummary]:
    return (
        db.query(DailySummary)
        .filter(DailySummary.user_id == user_id, DailySummary.date == day)
        .first()
    )


def _commit(db: Session, day: date) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save daily summary for %s", day)
        raise


def upsert_daily_summary(
    db: Session,
    user_id: str,
    day: date,
    summary: str,
    entry_count: int,
    mood_quality: Optional[str] = None,
    dominant_emotions: Optional[list[str]] = None,
) -> DailySummary:
    """Insert or update the DailySummary for (user_id, date)."""
    fields = {
        "summary": summary,
        "entry_count": entry_count,
        "mood_quality": mood_quality,
        "dominant_emotions": dominant_emotions,
        "updated_at": datetime.now(tz=timezone.utc),
    }

    row = _find(db, user_id, day)
    if row is None:
        row = DailySummary(user_id=user_id, date=day, edited=False, **fields)
        db.add(row)
    else:
        for key, value in fields.items():
            setattr(row, key, value)

    try:
        db.commit()
    except IntegrityError:
        # Lost an insert race on (user_id, date): update the winner instead.
        db.rollback()
        row = _find(db, user_id, day)
        if row is None:
            raise
        logger.warning("Concurrent insert of daily summary user=%s date=%s; updating existing row", user_id, day)
        for key, value in fields.items():
            setattr(row, key, value)
        _commit(db, day)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save daily summary for %s", day)
        raise

    db.refresh(row)
    logger.info("Saved daily summary user=%s date=%s entries=%s", user_id, day, entry_count)
    return row
