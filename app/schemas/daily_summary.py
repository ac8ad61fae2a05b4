"""
Daily summary ingest schemas.

PUT /api/daily-summaries/{date} → DailySummaryUpsertRequest → DailySummaryResponse
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class DailySummaryUpsertRequest(BaseModel):
    """Narrative summary of one day, produced by the transcript pipeline."""
    model_config = ConfigDict(extra="forbid")

    summary: NonBlank = Field(description="First-person narrative of the day.")
    entryCount: int = Field(ge=0, description="Journal entries recorded that day.")
    moodQuality: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=32)]] = None
    dominantEmotions: Optional[list[NonBlank]] = None


class DailySummaryResponse(BaseModel):
    id: str
    date: str
    summary: str
    entryCount: int
    moodQuality: Optional[str] = None
    dominantEmotions: list[str] = Field(default_factory=list)
    edited: bool
    syncScheduled: bool = Field(
        description="True when a background reflection refresh was queued."
    )
