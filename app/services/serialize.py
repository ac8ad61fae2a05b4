"""
Row → ReflectionCard mapping.

Pure functions: no session access. Blank list items are dropped and missing
lists become [].
"""
from __future__ import annotations

from typing import Any, Optional

from app.core.timezone import format_utc_iso
from app.models.daily_summary import DailySummary
from app.models.period_reflection import PeriodReflection
from app.schemas.reflection import ReflectionCard, ReflectionPeriod
from app.services.aggregate import ReflectionMode


def clean_list(values: Optional[list[str]]) -> list[str]:
    if not values:
        return []
    return [v for v in values if isinstance(v, str) and v.strip()]


def _plain_stats(stats: Any) -> Optional[dict[str, Any]]:
    return dict(stats) if isinstance(stats, dict) else None


def _common_fields(row: DailySummary | PeriodReflection) -> dict[str, Any]:
    return {
        "recordId": str(row.id) if row.id is not None else None,
        "achievements": clean_list(row.achievements),
        "commitments": clean_list(row.commitments),
        "moodOverall": row.mood_overall,
        "moodReason": row.mood_reason,
        "flashback": row.flashback,
        "stats": _plain_stats(row.stats),
        "edited": bool(row.edited),
        "lastGeneratedAt": format_utc_iso(row.last_generated_at) if row.last_generated_at else None,
        "genVersion": row.gen_version,
    }


def serialize_daily_reflection(row: DailySummary) -> ReflectionCard:
    day = row.date.isoformat()
    return ReflectionCard(
        period=ReflectionPeriod(type=ReflectionMode.daily, start=day, end=day, date=day),
        **_common_fields(row),
    )


def serialize_period_reflection(row: PeriodReflection) -> ReflectionCard:
    return ReflectionCard(
        period=ReflectionPeriod(
            type=ReflectionMode(row.period_type),
            start=row.period_start.isoformat(),
            end=row.period_end.isoformat(),
        ),
        **_common_fields(row),
    )
