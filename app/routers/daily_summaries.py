"""
Daily summary router.

PUT /api/daily-summaries/{date}  — upsert the day's narrative summary and
                                   queue a background reflection sync
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session, sessionmaker

from app.core.auth import get_current_user_id
from app.core.config import settings
from app.core.timezone import parse_date_string
from app.db.base import get_db, get_session_factory
from app.models.daily_summary import DailySummary
from app.schemas.common import ErrorResponse
from app.schemas.daily_summary import DailySummaryResponse, DailySummaryUpsertRequest
from app.services.daily_summaries import upsert_daily_summary
from app.services.llm import OpenAIReflectionModel, ReflectionModel, get_openai_client
from app.services.sync import run_background_sync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/daily-summaries", tags=["daily-summaries"])


def get_sync_model() -> ReflectionModel | None:
    """Reflection model for background sync, or None when no API key is set."""
    if not settings.OPENAI_API_KEY:
        return None
    return OpenAIReflectionModel(
        client=get_openai_client(),
        model=settings.OPENAI_REFLECTION_MODEL,
    )


def _to_response(row: DailySummary, sync_scheduled: bool) -> DailySummaryResponse:
    return DailySummaryResponse(
        id=str(row.id),
        date=row.date.isoformat(),
        summary=row.summary,
        entryCount=row.entry_count or 0,
        moodQuality=row.mood_quality,
        dominantEmotions=row.dominant_emotions or [],
        edited=bool(row.edited),
        syncScheduled=sync_scheduled,
    )


@router.put(
    "/{date}",
    response_model=DailySummaryResponse,
    summary="Upsert a day's narrative summary",
    responses={
        200: {"description": "Summary stored; reflection sync queued in the background."},
        422: {"model": ErrorResponse, "description": "Malformed date or invalid payload."},
    },
)
def put_daily_summary(
    date: str,
    payload: DailySummaryUpsertRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    session_factory: sessionmaker = Depends(get_session_factory),
    model: ReflectionModel | None = Depends(get_sync_model),
):
    """
    Store the summary produced by the transcript pipeline for `date`
    (one row per user per day). Reflection fields and edits are untouched.

    Daily, weekly and monthly reflections covering `date` are refreshed
    after the response is sent; a failure in one period does not stop the
    others, and the response never waits for them.
    """
    day = parse_date_string(date)
    row = upsert_daily_summary(
        db,
        user_id=user_id,
        day=day,
        summary=payload.summary,
        entry_count=payload.entryCount,
        mood_quality=payload.moodQuality or None,
        dominant_emotions=payload.dominantEmotions,
    )

    if model is None:
        logger.warning("OPENAI_API_KEY not set; skipping reflection sync for %s", day)
        return _to_response(row, sync_scheduled=False)

    background_tasks.add_task(run_background_sync, session_factory, model, user_id, day)
    return _to_response(row, sync_scheduled=True)
