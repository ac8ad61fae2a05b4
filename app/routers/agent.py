"""
Voice-agent tools router.

POST /api/agent/tools/context — journaling history for the agent
POST /api/agent/tools/search  — quota-limited web search
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id
from app.core.errors import (
    RangeRequiredError,
    SearchQuotaExceededError,
    UntrustedOriginError,
)
from app.core.timezone import format_utc_iso, parse_date_string
from app.db.base import get_db
from app.models.daily_summary import DailySummary
from app.models.mood_entry import MoodEntry
from app.models.period_reflection import PeriodReflection
from app.schemas.common import ErrorResponse
from app.schemas.agent import (
    ContextMood,
    ContextPayload,
    ContextReflection,
    ContextRequest,
    ContextResponse,
    ContextSummary,
    SearchRequest,
    SearchResponse,
)
from app.services.agent_context import ContextScope, fetch_user_context
from app.services.search import WebSearcher, get_web_searcher, parse_search_results
from app.services.search_quota import SearchQuotaStore, get_search_quota

router = APIRouter(prefix="/api/agent/tools", tags=["agent"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _summary_out(row: DailySummary) -> ContextSummary:
    return ContextSummary(
        id=str(row.id),
        date=row.date.isoformat(),
        summary=row.summary,
        entry_count=row.entry_count,
        mood_quality=row.mood_quality,
        mood_overall=row.mood_overall,
        mood_reason=row.mood_reason,
        achievements=row.achievements,
        commitments=row.commitments,
        flashback=row.flashback,
        stats=row.stats,
    )


def _reflection_out(row: PeriodReflection) -> ContextReflection:
    return ContextReflection(
        id=str(row.id),
        period_type=row.period_type,
        period_start=row.period_start.isoformat(),
        period_end=row.period_end.isoformat(),
        achievements=row.achievements,
        commitments=row.commitments,
        mood_overall=row.mood_overall,
        mood_reason=row.mood_reason,
        flashback=row.flashback,
        stats=row.stats,
    )


def _mood_out(row: Optional[MoodEntry]) -> Optional[ContextMood]:
    if row is None:
        return None
    return ContextMood(
        day_quality=row.day_quality,
        emotions=row.emotions or [],
        created_at=format_utc_iso(row.created_at) if row.created_at else None,
    )


def _host_of(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    host = urlparse(value).netloc
    return host.lower() or None


def require_trusted_origin(request: Request) -> None:
    """
    Same-host check on Origin (falling back to Referer). Requests carrying
    neither header are server-to-server and pass.
    """
    expected = (request.headers.get("host") or request.url.netloc).lower()
    if not expected:
        raise UntrustedOriginError()
    for header in ("origin", "referer"):
        host = _host_of(request.headers.get(header))
        if host:
            if host != expected:
                raise UntrustedOriginError()
            return


# ---------------------------------------------------------------------------
# POST /api/agent/tools/context
# ---------------------------------------------------------------------------

@router.post(
    "/context",
    response_model=ContextResponse,
    summary="Journaling context for the voice agent",
    responses={400: {"model": ErrorResponse, "description": "custom scope without a range."}},
)
def agent_context(
    payload: ContextRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if payload.scope == ContextScope.custom and payload.range is None:
        raise RangeRequiredError()

    ctx = fetch_user_context(
        db,
        user_id=user_id,
        scope=payload.scope,
        anchor_date=parse_date_string(payload.anchorDate) if payload.anchorDate else None,
        limit=payload.limit,
        range_start=parse_date_string(payload.range.start) if payload.range else None,
        range_end=parse_date_string(payload.range.end) if payload.range else None,
    )
    return ContextResponse(
        context=ContextPayload(
            scope=ctx.scope,
            anchorDate=ctx.anchor_date.isoformat(),
            summaries=[_summary_out(s) for s in ctx.summaries],
            reflections=[_reflection_out(r) for r in ctx.reflections],
            mood=_mood_out(ctx.mood),
        )
    )


# ---------------------------------------------------------------------------
# POST /api/agent/tools/search
# ---------------------------------------------------------------------------

@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Web search for the voice agent (daily quota per user)",
    responses={
        403: {"model": ErrorResponse, "description": "Cross-origin request."},
        429: {"model": ErrorResponse, "description": "Daily search limit reached."},
    },
    dependencies=[Depends(require_trusted_origin)],
)
def agent_search(
    payload: SearchRequest,
    user_id: str = Depends(get_current_user_id),
    quota: SearchQuotaStore = Depends(get_search_quota),
    searcher: WebSearcher = Depends(get_web_searcher),
):
    """
    Run one web search and return up to three `{title, url, snippet}` results
    plus the caller's remaining searches for the local day.
    """
    status = quota.can_use(user_id)
    if not status.allowed:
        raise SearchQuotaExceededError(limit=quota.limit)

    raw_text = searcher.search(payload.query)
    remaining = quota.record_usage(user_id)

    parsed = parse_search_results(raw_text)
    if parsed is None:
        return SearchResponse(
            results=[],
            remaining=remaining,
            note="Search completed but response format was unexpected.",
        )
    return SearchResponse(results=parsed["results"], remaining=remaining)
