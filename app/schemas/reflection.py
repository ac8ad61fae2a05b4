"""
Reflection schemas.

ReflectionAIOutput         — strict contract for the model's JSON reply
SyncReflectionRequest      — POST  /api/reflections/sync
PatchReflectionRequest     — PATCH /api/reflections/daily/{date}, /period/{id}
ReflectionCard             — read-facing projection of a daily / period row
"""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    StringConstraints,
    field_validator,
    model_serializer,
    model_validator,
)

from app.services.aggregate import ReflectionMode

MAX_ITEMS = 3
MAX_KEYWORDS = 8
MAX_TOP_EMOTIONS = 5

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
MoodLabel = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]
ShortText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=160)]
IsoDate = Annotated[str, StringConstraints(pattern=r"^\d{4}-\d{2}-\d{2}$")]

# Listing caps per mode.
MAX_LISTED_REFLECTIONS = {
    ReflectionMode.daily: 30,
    ReflectionMode.weekly: 12,
    ReflectionMode.monthly: 12,
}


# ---------------------------------------------------------------------------
# Model output contract
# ---------------------------------------------------------------------------

class ReflectionStats(BaseModel):
    model_config = ConfigDict(extra="forbid")

    entryCount: Optional[NonNegativeInt] = None
    topEmotions: Optional[list[NonBlank]] = Field(default=None, max_length=MAX_TOP_EMOTIONS)
    keywords: Optional[list[NonBlank]] = Field(default=None, max_length=MAX_KEYWORDS)


class ReflectionMood(BaseModel):
    model_config = ConfigDict(extra="forbid")

    overall: Optional[MoodLabel]
    reason: Optional[ShortText]


class ReflectionAIOutput(BaseModel):
    """What the model must return. Unknown keys are rejected at every level."""
    model_config = ConfigDict(extra="forbid")

    achievements: list[NonBlank] = Field(default_factory=list, max_length=MAX_ITEMS)
    commitments: list[NonBlank] = Field(default_factory=list, max_length=MAX_ITEMS)
    mood: ReflectionMood = Field(
        default_factory=lambda: ReflectionMood(overall=None, reason=None)
    )
    flashback: Optional[ShortText] = None
    stats: Optional[ReflectionStats] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class SyncReflectionRequest(BaseModel):
    """Generate (or refresh) one reflection for the period containing anchorDate."""
    model_config = ConfigDict(extra="forbid")

    mode: ReflectionMode = Field(examples=["weekly"])
    anchorDate: Optional[IsoDate] = Field(
        default=None,
        description="Civil date inside the period. Defaults to today (APP_TIMEZONE).",
        examples=["2025-11-13"],
    )


class PatchReflectionRequest(BaseModel):
    """
    User edit of the narrative fields. Only supplied keys are applied; an
    explicit null clears a text field. At least one non-null value is required.
    """
    model_config = ConfigDict(extra="forbid")

    achievements: Optional[list[NonBlank]] = Field(default=None, max_length=MAX_ITEMS)
    commitments: Optional[list[NonBlank]] = Field(default=None, max_length=MAX_ITEMS)
    moodOverall: Optional[MoodLabel] = None
    moodReason: Optional[ShortText] = None
    flashback: Optional[ShortText] = None

    @field_validator("achievements", "commitments")
    @classmethod
    def _lists_not_null(cls, value):
        # Lists can be emptied with [] but not cleared with null.
        if value is None:
            raise ValueError("must be a list, not null")
        return value

    @model_validator(mode="after")
    def _at_least_one_value(self) -> "PatchReflectionRequest":
        if all(getattr(self, name) is None for name in type(self).model_fields):
            raise ValueError("At least one field must be provided for update.")
        return self

    def column_updates(self) -> dict[str, Any]:
        """Supplied fields keyed by their column names."""
        columns = {
            "achievements": "achievements",
            "commitments": "commitments",
            "moodOverall": "mood_overall",
            "moodReason": "mood_reason",
            "flashback": "flashback",
        }
        supplied = self.model_dump(exclude_unset=True)
        return {columns[key]: value for key, value in supplied.items()}


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class ReflectionPeriod(BaseModel):
    type: ReflectionMode
    start: str = Field(description="Inclusive ISO start date.")
    end: str = Field(description="Inclusive ISO end date.")
    date: Optional[str] = Field(default=None, description="Only set for daily cards.")

    @model_serializer(mode="wrap")
    def _drop_missing_date(self, handler):
        data = handler(self)
        if data.get("date") is None:
            data.pop("date", None)
        return data


class ReflectionCard(BaseModel):
    recordId: Optional[str] = None
    period: ReflectionPeriod
    achievements: list[str] = Field(default_factory=list)
    commitments: list[str] = Field(default_factory=list)
    moodOverall: Optional[str] = None
    moodReason: Optional[str] = None
    flashback: Optional[str] = None
    stats: Optional[dict[str, Any]] = None
    edited: bool = False
    lastGeneratedAt: Optional[str] = None
    genVersion: Optional[str] = None


class ReflectionCardResponse(BaseModel):
    success: bool = True
    card: ReflectionCard


class ReflectionCardListResponse(BaseModel):
    cards: list[ReflectionCard]
