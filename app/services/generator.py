"""
Reflection generator.

Produces or refreshes exactly one reflection for (user, mode, anchor date):

  1. resolve period bounds for the anchor date
  2. load the period's daily aggregates (NoDataForPeriodError when empty)
  3. prompt the model for strict JSON
  4. parse → truncate lists → validate against ReflectionAIOutput
  5. merge with the stored row: an `edited` row keeps its narrative fields,
     only stats / gen_version / last_generated_at are refreshed
  6. persist — update the DailySummary (daily) or upsert the
     PeriodReflection on (user_id, period_type, period_start)

Nothing is written until the model output has been validated, so a failed
generation leaves the stored row (or its absence) untouched. No retries
here; callers decide.

Public API
----------
generate_reflection(db, model, user_id, mode, anchor_date) -> ReflectionCard
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    GenerationFailedError,
    NoDataForPeriodError,
    SchemaValidationFailedError,
)
from app.models.daily_summary import DailySummary
from app.models.period_reflection import PeriodReflection
from app.schemas.reflection import (
    MAX_ITEMS,
    MAX_KEYWORDS,
    ReflectionAIOutput,
    ReflectionCard,
)
from app.services.aggregate import (
    DailyAggregate,
    PeriodBounds,
    ReflectionMode,
    count_emotions,
    fetch_aggregates_in_range,
    fetch_daily_aggregate,
    get_period_bounds,
    resolve_anchor_date,
    sum_entries,
)
from app.services.llm import ReflectionModel
from app.services.serialize import (
    clean_list,
    serialize_daily_reflection,
    serialize_period_reflection,
)

logger = logging.getLogger(__name__)

GEN_VERSION = "reflection-v1"

SYSTEM_PROMPT = """You are an empathetic journaling coach. Respond strictly with JSON matching:
{
  "achievements": string[<=3],
  "commitments": string[<=3],
  "mood": {
    "overall": string | null,
    "reason": string | null
  },
  "flashback": string | null,
  "stats": {
    "entryCount"?: number,
    "topEmotions"?: string[],
    "keywords"?: string[]
  }
}"""


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


# ---------------------------------------------------------------------------
# Prompt building (pure)
# ---------------------------------------------------------------------------

def build_daily_context(aggregate: DailyAggregate) -> str:
    summary, mood = aggregate.summary, aggregate.mood
    parts = [
        f"Date: {summary.date.isoformat()}",
        f"Daily summary: {summary.summary}",
        f"Entry count: {summary.entry_count or 0}",
    ]
    if summary.mood_quality:
        parts.append(f"Mood quality: {summary.mood_quality}")

    emotions = clean_list(summary.dominant_emotions) or clean_list(mood.emotions if mood else None)
    if emotions:
        parts.append(f"Emotions: {', '.join(emotions)}")

    if mood is not None and mood.day_quality and not summary.mood_quality:
        parts.append(f"Mood (check-in): {mood.day_quality}")

    return "\n".join(parts)


def build_period_intro(mode: ReflectionMode) -> str:
    label = "week" if mode == ReflectionMode.weekly else "month"
    return (
        f"You are summarising the user's {label}. Consider the progression across days, "
        "highlight sustained achievements and commitments, and reflect on overall mood."
    )


def build_aggregated_text(aggregates: list[DailyAggregate]) -> str:
    """One line per day: date | summary | entries | mood | emotions."""
    lines: list[str] = []
    for agg in aggregates:
        summary, mood = agg.summary, agg.mood
        day_parts = [
            f"Date: {summary.date.isoformat()}",
            f"Summary: {summary.summary}",
            f"Entries: {summary.entry_count or 0}",
        ]
        mood_label = summary.mood_quality or (mood.day_quality if mood else None)
        if mood_label:
            day_parts.append(f"Mood: {mood_label}")
        emotions = clean_list(summary.dominant_emotions) or clean_list(mood.emotions if mood else None)
        if emotions:
            day_parts.append(f"Emotions: {', '.join(emotions)}")
        lines.append(" | ".join(day_parts))
    return "\n".join(lines)


def period_label(mode: ReflectionMode, bounds: PeriodBounds) -> str:
    if mode == ReflectionMode.weekly:
        return f"Week of {bounds.start.isoformat()} - {bounds.end.isoformat()}"
    return f"Month of {bounds.start.strftime('%Y-%m')}"


def build_user_prompt(
    mode: ReflectionMode,
    context_text: str,
    aggregates: list[DailyAggregate],
) -> str:
    subject = "day" if mode == ReflectionMode.daily else _ev(mode)
    top_emotions = ", ".join(count_emotions(aggregates)) or "None"
    return (
        f"Use the JSON schema from the system message to summarise the following {subject}.\n"
        "\n"
        "Context:\n"
        f"{context_text}\n"
        "\n"
        "Aggregated stats:\n"
        f"- Total entries: {sum_entries(aggregates)}\n"
        f"- Top emotions: {top_emotions}\n"
        "\n"
        "Remember:\n"
        "- achievements: ≤3 concise bullet statements focusing on wins or progress.\n"
        "- commitments: ≤3 upcoming focus points or promises hinted in the context.\n"
        '- mood.overall: one-word or short phrase descriptor (e.g. "happy", "reflective").\n'
        "- mood.reason: ≤120 chars justification rooted in the context.\n"
        "- flashback: ≤120 chars hook to re-engage the user later.\n"
        "- stats: optionally include entryCount, topEmotions, keywords if helpful.\n"
        "\n"
        "Return JSON only."
    )


# ---------------------------------------------------------------------------
# Output parsing
# ---------------------------------------------------------------------------

def _truncate(obj: Any) -> Any:
    """Clip over-long lists before validation so only real violations fail."""
    if not isinstance(obj, dict):
        return obj
    for key in ("achievements", "commitments"):
        if isinstance(obj.get(key), list):
            obj[key] = obj[key][:MAX_ITEMS]
    stats = obj.get("stats")
    if isinstance(stats, dict) and isinstance(stats.get("keywords"), list):
        stats["keywords"] = stats["keywords"][:MAX_KEYWORDS]
    return obj


def parse_model_output(text: str, mode: ReflectionMode) -> ReflectionAIOutput:
    try:
        obj = json.loads(text or "{}")
    except ValueError as exc:
        logger.error("Reflection JSON parse failed (%s): %r", _ev(mode), text)
        raise GenerationFailedError(
            message="Model returned text that is not valid JSON.", raw=text
        ) from exc

    obj = _truncate(obj)
    try:
        return ReflectionAIOutput.model_validate(obj)
    except ValidationError as exc:
        logger.error("Reflection output failed validation (%s): %r", _ev(mode), obj)
        raise SchemaValidationFailedError(
            errors=json.loads(exc.json(include_url=False))
        ) from exc


# ---------------------------------------------------------------------------
# Merge policy
# ---------------------------------------------------------------------------

def clean_stats(stats: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not stats:
        return None
    cleaned: dict[str, Any] = {}
    if isinstance(stats.get("entryCount"), int):
        cleaned["entryCount"] = stats["entryCount"]
    if isinstance(stats.get("topEmotions"), list):
        cleaned["topEmotions"] = stats["topEmotions"]
    if isinstance(stats.get("keywords"), list):
        cleaned["keywords"] = stats["keywords"]
    return cleaned or None


def merged_fields(
    existing: DailySummary | PeriodReflection | None,
    parsed: ReflectionAIOutput,
    fallback_stats: dict[str, Any],
) -> dict[str, Any]:
    """
    Column values to write. A row with edited=True keeps achievements,
    commitments, mood and flashback; everything else is refreshed.
    """
    fields: dict[str, Any] = {}
    if existing is None or not existing.edited:
        fields.update(
            achievements=list(parsed.achievements),
            commitments=list(parsed.commitments),
            mood_overall=parsed.mood.overall,
            mood_reason=parsed.mood.reason,
            flashback=parsed.flashback,
        )
    model_stats = parsed.stats.model_dump(exclude_none=True) if parsed.stats else None
    fields.update(
        stats=clean_stats(model_stats) or clean_stats(fallback_stats),
        gen_version=GEN_VERSION,
        last_generated_at=_now(),
    )
    return fields


def _apply(row, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        setattr(row, key, value)


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to persist %s", what)
        raise


# ---------------------------------------------------------------------------
# Daily
# ---------------------------------------------------------------------------

def _generate_daily(
    db: Session,
    model: ReflectionModel,
    user_id: str,
    day,
) -> ReflectionCard:
    bounds = get_period_bounds(ReflectionMode.daily, day)
    aggregate = fetch_daily_aggregate(db, user_id, day)
    if aggregate is None:
        raise NoDataForPeriodError(ReflectionMode.daily.value, bounds.start, bounds.end)

    # Month-level emotion context for the single-day prompt.
    month = get_period_bounds(ReflectionMode.monthly, day)
    month_aggregates = fetch_aggregates_in_range(db, user_id, month.start, month.end)

    user_prompt = build_user_prompt(
        ReflectionMode.daily, build_daily_context(aggregate), month_aggregates
    )
    parsed = parse_model_output(
        model.complete(SYSTEM_PROMPT, user_prompt), ReflectionMode.daily
    )

    row = aggregate.summary
    # Pick up an edit that landed while the model was running.
    db.refresh(row)
    _apply(row, merged_fields(
        row,
        parsed,
        fallback_stats={
            "entryCount": row.entry_count or 0,
            "topEmotions": count_emotions(month_aggregates),
        },
    ))
    _commit(db, f"daily reflection {day}")
    db.refresh(row)
    return serialize_daily_reflection(row)


# ---------------------------------------------------------------------------
# Weekly / monthly
# ---------------------------------------------------------------------------

def _find_period_reflection(
    db: Session,
    user_id: str,
    mode: ReflectionMode,
    bounds: PeriodBounds,
) -> Optional[PeriodReflection]:
    return (
        db.query(PeriodReflection)
        .filter(
            PeriodReflection.user_id == user_id,
            PeriodReflection.period_type == mode.value,
            PeriodReflection.period_start == bounds.start,
        )
        .first()
    )


def _upsert_period_reflection(
    db: Session,
    user_id: str,
    mode: ReflectionMode,
    bounds: PeriodBounds,
    parsed: ReflectionAIOutput,
    fallback_stats: dict[str, Any],
) -> PeriodReflection:
    """Insert or update the row for (user_id, period_type, period_start)."""
    what = f"{mode.value} reflection {bounds.start}"
    existing = _find_period_reflection(db, user_id, mode, bounds)
    if existing is not None:
        _apply(existing, merged_fields(existing, parsed, fallback_stats))
        existing.period_end = bounds.end
        _commit(db, what)
        db.refresh(existing)
        return existing

    row = PeriodReflection(
        user_id=user_id,
        period_type=mode.value,
        period_start=bounds.start,
        period_end=bounds.end,
        edited=False,
        **merged_fields(None, parsed, fallback_stats),
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Another generation inserted the same period first; update theirs.
        db.rollback()
        existing = _find_period_reflection(db, user_id, mode, bounds)
        if existing is None:
            raise
        logger.warning("Concurrent insert on %s; merging into existing row", what)
        _apply(existing, merged_fields(existing, parsed, fallback_stats))
        _commit(db, what)
        row = existing
    db.refresh(row)
    return row


def _generate_period(
    db: Session,
    model: ReflectionModel,
    user_id: str,
    mode: ReflectionMode,
    anchor,
) -> ReflectionCard:
    bounds = get_period_bounds(mode, anchor)
    aggregates = fetch_aggregates_in_range(db, user_id, bounds.start, bounds.end)
    if not aggregates:
        raise NoDataForPeriodError(mode.value, bounds.start, bounds.end)

    context = f"{build_period_intro(mode)}\n\n{build_aggregated_text(aggregates)}"
    user_prompt = f"{period_label(mode, bounds)}\n\n{build_user_prompt(mode, context, aggregates)}"
    parsed = parse_model_output(model.complete(SYSTEM_PROMPT, user_prompt), mode)

    row = _upsert_period_reflection(
        db, user_id, mode, bounds, parsed,
        fallback_stats={
            "entryCount": sum_entries(aggregates),
            "topEmotions": count_emotions(aggregates),
        },
    )
    return serialize_period_reflection(row)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def generate_reflection(
    db: Session,
    model: ReflectionModel,
    user_id: str,
    mode: ReflectionMode | str,
    anchor_date=None,
) -> ReflectionCard:
    """Generate or refresh the reflection for the period containing anchor_date."""
    mode = ReflectionMode(_ev(mode))
    anchor = resolve_anchor_date(anchor_date)
    logger.info("Generating %s reflection for user=%s anchor=%s", mode.value, user_id, anchor)

    if mode == ReflectionMode.daily:
        return _generate_daily(db, model, user_id, anchor)
    return _generate_period(db, model, user_id, mode, anchor)
