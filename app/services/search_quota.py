"""
Per-user daily quota for the agent's web-search tool.

An explicit in-memory store created once per process and injected into the
search handler. Counts reset when the local day (APP_TIMEZONE) rolls over.
Nothing is persisted: a restart gives every user a fresh allowance, so this
is an advisory soft limit, not a billing control.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable

from app.core.config import settings
from app.core.timezone import local_today


@dataclass(frozen=True)
class QuotaStatus:
    allowed: bool
    remaining: int


@dataclass
class _Usage:
    day: date
    count: int


class SearchQuotaStore:
    def __init__(self, limit: int, today: Callable[[], date] = local_today):
        self.limit = limit
        self._today = today
        self._usage: dict[str, _Usage] = {}
        self._lock = threading.Lock()

    def _current(self, user_id: str) -> _Usage:
        today = self._today()
        usage = self._usage.get(user_id)
        if usage is None or usage.day != today:
            usage = _Usage(day=today, count=0)
            self._usage[user_id] = usage
        return usage

    def can_use(self, user_id: str) -> QuotaStatus:
        with self._lock:
            usage = self._current(user_id)
            return QuotaStatus(
                allowed=usage.count < self.limit,
                remaining=max(self.limit - usage.count, 0),
            )

    def record_usage(self, user_id: str) -> int:
        """Count one search; returns the remaining allowance."""
        with self._lock:
            usage = self._current(user_id)
            usage.count += 1
            return max(self.limit - usage.count, 0)


search_quota = SearchQuotaStore(limit=settings.SEARCH_DAILY_LIMIT)


def get_search_quota() -> SearchQuotaStore:
    return search_quota
