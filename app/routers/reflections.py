"""
Reflections router.

POST  /api/reflections/sync           — generate / refresh one reflection now
GET   /api/reflections/daily          — daily cards, newest first (max 30)
PATCH /api/reflections/daily/{date}   — user edit of a daily reflection
GET   /api/reflections/weekly         — weekly cards, newest first (max 12)
GET   /api/reflections/monthly        — monthly cards, newest first (max 12)
PATCH /api/reflections/period/{id}    — user edit of a weekly / monthly reflection
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id
from app.core.timezone import parse_date_string
from app.db.base import get_db
from app.schemas.common import ErrorResponse
from app.schemas.reflection import (
    MAX_LISTED_REFLECTIONS,
    PatchReflectionRequest,
    ReflectionCardListResponse,
    ReflectionCardResponse,
    SyncReflectionRequest,
)
from app.services.aggregate import ReflectionMode
from app.services.generator import generate_reflection
from app.services.llm import ReflectionModel, get_reflection_model
from app.services.reflections import (
    list_daily_reflections,
    list_period_reflections,
    patch_daily_reflection,
    patch_period_reflection,
)
from app.services.serialize import serialize_daily_reflection, serialize_period_reflection

router = APIRouter(prefix="/api/reflections", tags=["reflections"])


def _capped(limit: Optional[int], mode: ReflectionMode) -> int:
    cap = MAX_LISTED_REFLECTIONS[mode]
    return cap if limit is None else min(limit, cap)


# ---------------------------------------------------------------------------
# POST /api/reflections/sync
# ---------------------------------------------------------------------------

@router.post(
    "/sync",
    response_model=ReflectionCardResponse,
    summary="Generate or refresh the reflection for one period",
    responses={
        404: {"model": ErrorResponse, "description": "No daily summaries exist for the period."},
        422: {"model": ErrorResponse, "description": "Invalid mode or anchorDate."},
        500: {"model": ErrorResponse, "description": "Model call, JSON parse or schema validation failed."},
    },
)
def sync_reflection(
    payload: SyncReflectionRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    model: ReflectionModel = Depends(get_reflection_model),
):
    """
    Run the reflection generator for the period (`daily`, `weekly` or
    `monthly`) that contains `anchorDate` and return the resulting card.

    A reflection the user has edited keeps its achievements, commitments,
    mood and flashback; only stats, `genVersion` and `lastGeneratedAt` change.
    """
    anchor = parse_date_string(payload.anchorDate) if payload.anchorDate else None
    card = generate_reflection(
        db=db,
        model=model,
        user_id=user_id,
        mode=payload.mode,
        anchor_date=anchor,
    )
    return ReflectionCardResponse(success=True, card=card)


# ---------------------------------------------------------------------------
# Daily
# ---------------------------------------------------------------------------

@router.get(
    "/daily",
    response_model=ReflectionCardListResponse,
    summary="List daily reflection cards (newest first)",
)
def list_daily(
    limit: Optional[int] = Query(default=None, ge=1, description="Capped at 30."),
    start: Optional[str] = Query(
        default=None,
        description="Latest date to include (YYYY-MM-DD).",
        examples=["2025-11-13"],
    ),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    start_day = parse_date_string(start) if start else None
    rows = list_daily_reflections(
        db, user_id, limit=_capped(limit, ReflectionMode.daily), start=start_day
    )
    return ReflectionCardListResponse(cards=[serialize_daily_reflection(r) for r in rows])


@router.patch(
    "/daily/{date}",
    response_model=ReflectionCardResponse,
    summary="Edit a daily reflection",
    responses={
        404: {"model": ErrorResponse, "description": "No daily summary for that date."},
        422: {"model": ErrorResponse, "description": "Malformed date or empty / invalid payload."},
    },
)
def patch_daily(
    date: str,
    payload: PatchReflectionRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Apply only the supplied fields and mark the reflection as edited."""
    day = parse_date_string(date)
    row = patch_daily_reflection(db, user_id, day, payload.column_updates())
    return ReflectionCardResponse(success=True, card=serialize_daily_reflection(row))


# ---------------------------------------------------------------------------
# Weekly / monthly
# ---------------------------------------------------------------------------

@router.get(
    "/weekly",
    response_model=ReflectionCardListResponse,
    summary="List weekly reflection cards (newest first)",
)
def list_weekly(
    limit: Optional[int] = Query(default=None, ge=1, description="Capped at 12."),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    rows = list_period_reflections(
        db, user_id, ReflectionMode.weekly, limit=_capped(limit, ReflectionMode.weekly)
    )
    return ReflectionCardListResponse(cards=[serialize_period_reflection(r) for r in rows])


@router.get(
    "/monthly",
    response_model=ReflectionCardListResponse,
    summary="List monthly reflection cards (newest first)",
)
def list_monthly(
    limit: Optional[int] = Query(default=None, ge=1, description="Capped at 12."),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    rows = list_period_reflections(
        db, user_id, ReflectionMode.monthly, limit=_capped(limit, ReflectionMode.monthly)
    )
    return ReflectionCardListResponse(cards=[serialize_period_reflection(r) for r in rows])


@router.patch(
    "/period/{reflection_id}",
    response_model=ReflectionCardResponse,
    summary="Edit a weekly or monthly reflection",
    responses={
        404: {"model": ErrorResponse, "description": "Reflection not found for this user."},
        422: {"model": ErrorResponse, "description": "Malformed id or empty / invalid payload."},
    },
)
def patch_period(
    reflection_id: uuid.UUID,
    payload: PatchReflectionRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    row = patch_period_reflection(db, user_id, reflection_id, payload.column_updates())
    return ReflectionCardResponse(success=True, card=serialize_period_reflection(row))
