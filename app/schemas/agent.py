"""
Voice-agent tool schemas.

POST /api/agent/tools/context → ContextRequest → ContextResponse
POST /api/agent/tools/search  → SearchRequest  → SearchResponse
"""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field, StringConstraints

from app.services.agent_context import ContextScope

IsoDate = Annotated[str, StringConstraints(pattern=r"^\d{4}-\d{2}-\d{2}$")]


class DateRange(BaseModel):
    start: IsoDate
    end: IsoDate


class ContextRequest(BaseModel):
    scope: ContextScope = ContextScope.recent
    anchorDate: Optional[IsoDate] = Field(default=None, examples=["2025-11-13"])
    limit: Optional[int] = Field(default=None, ge=1, le=20)
    range: Optional[DateRange] = None


class ContextSummary(BaseModel):
    id: str
    date: str
    summary: str
    entry_count: Optional[int] = None
    mood_quality: Optional[str] = None
    mood_overall: Optional[str] = None
    mood_reason: Optional[str] = None
    achievements: Optional[list[str]] = None
    commitments: Optional[list[str]] = None
    flashback: Optional[str] = None
    stats: Optional[dict[str, Any]] = None


class ContextReflection(BaseModel):
    id: str
    period_type: str
    period_start: str
    period_end: str
    achievements: Optional[list[str]] = None
    commitments: Optional[list[str]] = None
    mood_overall: Optional[str] = None
    mood_reason: Optional[str] = None
    flashback: Optional[str] = None
    stats: Optional[dict[str, Any]] = None


class ContextMood(BaseModel):
    day_quality: str
    emotions: list[str] = Field(default_factory=list)
    created_at: Optional[str] = None


class ContextPayload(BaseModel):
    scope: ContextScope
    anchorDate: str
    summaries: list[ContextSummary]
    reflections: list[ContextReflection]
    mood: Optional[ContextMood] = None


class ContextResponse(BaseModel):
    context: ContextPayload


class SearchRequest(BaseModel):
    query: str = Field(min_length=4, max_length=200)


class SearchResponse(BaseModel):
    results: list[Any] = Field(default_factory=list)
    remaining: int
    note: Optional[str] = None
