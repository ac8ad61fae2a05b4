"""
Journaling context for the voice agent.

Scopes
------
  today   — the local day containing anchorDate (default: now)
  week    — Monday–Sunday week containing anchorDate, plus its weekly reflection
  month   — calendar month containing anchorDate, plus its monthly reflection
  recent  — the latest N daily summaries
  custom  — daily summaries inside an explicit [start, end] range

Summaries are capped at `limit` (1–20, default 5). The latest mood check-in
inside the window is included for today / week / month.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.timezone import get_local_day_range, get_utc_range_for_date
from app.models.daily_summary import DailySummary
from app.models.mood_entry import MoodEntry
from app.models.period_reflection import PeriodReflection
from app.services.aggregate import ReflectionMode, get_period_bounds

DEFAULT_LIMIT = 5
MAX_LIMIT = 20


class ContextScope(str, enum.Enum):
    today = "today"
    week = "week"
    month = "month"
    recent = "recent"
    custom = "custom"


@dataclass
class UserContext:
    scope: ContextScope
    anchor_date: date
    summaries: list[DailySummary] = field(default_factory=list)
    reflections: list[PeriodReflection] = field(default_factory=list)
    mood: Optional[MoodEntry] = None


def clamp_limit(limit: Optional[int]) -> int:
    return min(max(limit or DEFAULT_LIMIT, 1), MAX_LIMIT)


def _summaries_between(db: Session, user_id: str, start: date, end: date, limit: int):
    return (
        db.query(DailySummary)
        .filter(
            DailySummary.user_id == user_id,
            DailySummary.date >= start,
            DailySummary.date <= end,
        )
        .order_by(DailySummary.date.asc())
        .limit(limit)
        .all()
    )


def _latest_mood(db: Session, user_id: str, start: datetime, end: datetime):
    return (
        db.query(MoodEntry)
        .filter(
            MoodEntry.user_id == user_id,
            MoodEntry.created_at >= start,
            MoodEntry.created_at <= end,
        )
        .order_by(MoodEntry.created_at.desc())
        .first()
    )


def fetch_user_context(
    db: Session,
    user_id: str,
    scope: ContextScope,
    anchor_date: Optional[date] = None,
    limit: Optional[int] = None,
    range_start: Optional[date] = None,
    range_end: Optional[date] = None,
) -> UserContext:
    limit = clamp_limit(limit)
    anchor = anchor_date or get_local_day_range().date
    result = UserContext(scope=scope, anchor_date=anchor)

    if scope == ContextScope.custom and range_start and range_end:
        result.summaries = _summaries_between(db, user_id, range_start, range_end, limit)
        return result

    if scope in (ContextScope.today, ContextScope.week, ContextScope.month):
        if scope == ContextScope.today:
            start_day = end_day = anchor
        else:
            mode = ReflectionMode.weekly if scope == ContextScope.week else ReflectionMode.monthly
            bounds = get_period_bounds(mode, anchor)
            start_day, end_day = bounds.start, bounds.end

        result.summaries = _summaries_between(db, user_id, start_day, end_day, limit)
        result.mood = _latest_mood(
            db, user_id,
            get_utc_range_for_date(start_day).start,
            get_utc_range_for_date(end_day).end,
        )
        if scope != ContextScope.today:
            result.reflections = (
                db.query(PeriodReflection)
                .filter(
                    PeriodReflection.user_id == user_id,
                    PeriodReflection.period_type == mode.value,
                    PeriodReflection.period_start == start_day,
                )
                .all()
            )
        return result

    # recent (and custom without a range) → latest summaries
    result.summaries = (
        db.query(DailySummary)
        .filter(DailySummary.user_id == user_id)
        .order_by(DailySummary.date.desc())
        .limit(limit)
        .all()
    )
    return result
