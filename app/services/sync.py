"""
Reflection sync — refresh every period that covers a changed date.

Runs daily → weekly → monthly one after another. Each mode fails on its
own: the error is logged and the next mode still runs. Nothing is rolled
back across modes. Scheduled as a background task, so the request that
changed the data never waits for it.

Public API
----------
sync_reflections_for_date(db, model, user_id, anchor_date, modes) -> SyncResult
run_background_sync(session_factory, model, user_id, anchor_date)  -> SyncResult
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session, sessionmaker

from app.services.aggregate import REFLECTION_MODE_ORDER, ReflectionMode
from app.services.generator import generate_reflection
from app.services.llm import ReflectionModel

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    anchor_date: date
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)   # mode → error


def sync_reflections_for_date(
    db: Session,
    model: ReflectionModel,
    user_id: str,
    anchor_date: date,
    modes: Optional[Iterable[ReflectionMode | str]] = None,
) -> SyncResult:
    result = SyncResult(anchor_date=anchor_date)
    for mode in modes or REFLECTION_MODE_ORDER:
        mode = ReflectionMode(mode)
        try:
            generate_reflection(db, model, user_id, mode, anchor_date)
        except Exception as exc:
            db.rollback()
            logger.exception(
                "Failed to sync %s reflection for user=%s anchor=%s",
                mode.value, user_id, anchor_date,
            )
            result.failed[mode.value] = str(exc)
        else:
            result.succeeded.append(mode.value)
    return result


def run_background_sync(
    session_factory: sessionmaker,
    model: ReflectionModel,
    user_id: str,
    anchor_date: date,
) -> SyncResult:
    """Background-task entry point: owns its session for the whole fan-out."""
    db = session_factory()
    try:
        result = sync_reflections_for_date(db, model, user_id, anchor_date)
    finally:
        db.close()
    if result.failed:
        logger.warning(
            "Reflection sync for user=%s anchor=%s finished with failures: %s",
            user_id, anchor_date, sorted(result.failed),
        )
    return result
