"""
Period aggregation for reflections.

Resolves the calendar bounds of a daily / weekly / monthly period and loads
the DailySummary rows (joined with the same-day MoodEntry) that cover it.

Rules:
- Weeks run Monday → Sunday. A Sunday anchor closes its own week.
- Months run from the 1st to the last calendar day (leap years included).
- "No rows" is a normal outcome (None / []); every other store error propagates.
- Moods are matched to summaries by the local civil date of `created_at`
  in the configured timezone.

Public API
----------
resolve_anchor_date(anchor_date)                     -> date
get_period_bounds(mode, anchor_date)                 -> PeriodBounds
fetch_daily_aggregate(db, user_id, day)              -> DailyAggregate | None
fetch_aggregates_in_range(db, user_id, start, end)   -> list[DailyAggregate]
count_emotions(aggregates)                           -> list[str]
sum_entries(aggregates)                              -> int
"""
from __future__ import annotations

import calendar
import enum
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.timezone import get_utc_range_for_date, local_date_of, local_today
from app.models.daily_summary import DailySummary
from app.models.mood_entry import MoodEntry


class ReflectionMode(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


# Order in which a sync refreshes the periods covering a date.
REFLECTION_MODE_ORDER: list[ReflectionMode] = [
    ReflectionMode.daily,
    ReflectionMode.weekly,
    ReflectionMode.monthly,
]


@dataclass(frozen=True)
class PeriodBounds:
    start: date   # inclusive
    end: date     # inclusive


@dataclass
class DailyAggregate:
    summary: DailySummary
    mood: Optional[MoodEntry] = None


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


# ---------------------------------------------------------------------------
# Period math (pure)
# ---------------------------------------------------------------------------

def resolve_anchor_date(anchor_date: Optional[date] = None) -> date:
    """Explicit anchor wins; otherwise today in the configured timezone."""
    return anchor_date if anchor_date is not None else local_today()


def get_period_bounds(mode: ReflectionMode | str, anchor_date: date) -> PeriodBounds:
    kind = _ev(mode)

    if kind == ReflectionMode.daily.value:
        return PeriodBounds(start=anchor_date, end=anchor_date)

    if kind == ReflectionMode.weekly.value:
        monday = anchor_date - timedelta(days=anchor_date.weekday())
        return PeriodBounds(start=monday, end=monday + timedelta(days=6))

    if kind == ReflectionMode.monthly.value:
        last_day = calendar.monthrange(anchor_date.year, anchor_date.month)[1]
        return PeriodBounds(
            start=anchor_date.replace(day=1),
            end=anchor_date.replace(day=last_day),
        )

    raise ValueError(f"Unknown reflection mode: {kind}")


# ---------------------------------------------------------------------------
# Store reads
# ---------------------------------------------------------------------------

def fetch_daily_aggregate(
    db: Session,
    user_id: str,
    day: date,
) -> Optional[DailyAggregate]:
    """Summary + mood for one day, or None when no summary exists."""
    summary = (
        db.query(DailySummary)
        .filter(DailySummary.user_id == user_id, DailySummary.date == day)
        .first()
    )
    if summary is None:
        return None

    window = get_utc_range_for_date(day)
    mood = (
        db.query(MoodEntry)
        .filter(
            MoodEntry.user_id == user_id,
            MoodEntry.created_at >= window.start,
            MoodEntry.created_at <= window.end,
        )
        .order_by(MoodEntry.created_at.desc())
        .first()
    )
    return DailyAggregate(summary=summary, mood=mood)


def fetch_aggregates_in_range(
    db: Session,
    user_id: str,
    start: date,
    end: date,
) -> list[DailyAggregate]:
    """All summaries in [start, end] (oldest first), each with its day's mood."""
    summaries = (
        db.query(DailySummary)
        .filter(
            DailySummary.user_id == user_id,
            DailySummary.date >= start,
            DailySummary.date <= end,
        )
        .order_by(DailySummary.date.asc())
        .all()
    )
    if not summaries:
        return []

    window_start = get_utc_range_for_date(start).start
    window_end = get_utc_range_for_date(end).end
    moods = (
        db.query(MoodEntry)
        .filter(
            MoodEntry.user_id == user_id,
            MoodEntry.created_at >= window_start,
            MoodEntry.created_at <= window_end,
        )
        .order_by(MoodEntry.created_at.asc())
        .all()
    )

    # Later check-ins on the same day replace earlier ones.
    mood_by_day: dict[date, MoodEntry] = {}
    for mood in moods:
        mood_by_day[local_date_of(mood.created_at)] = mood

    return [
        DailyAggregate(summary=s, mood=mood_by_day.get(s.date))
        for s in summaries
    ]


# ---------------------------------------------------------------------------
# Stats (pure)
# ---------------------------------------------------------------------------

def count_emotions(aggregates: list[DailyAggregate]) -> list[str]:
    """
    Emotion labels by descending frequency across summary and mood sources.
    Ties keep first-encountered order.
    """
    tally: Counter[str] = Counter()
    for agg in aggregates:
        tally.update(agg.summary.dominant_emotions or [])
        if agg.mood is not None:
            tally.update(agg.mood.emotions or [])
    return [emotion for emotion, _ in tally.most_common()]


def sum_entries(aggregates: list[DailyAggregate]) -> int:
    return sum(agg.summary.entry_count or 0 for agg in aggregates)
