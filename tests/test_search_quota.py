"""
Tests for the per-user daily web-search quota.
"""
from datetime import date, timedelta

from app.services.search_quota import SearchQuotaStore


class _Clock:
    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


def test_fresh_user_has_full_allowance():
    store = SearchQuotaStore(limit=5, today=_Clock(date(2025, 11, 15)))
    status = store.can_use("u1")
    assert status.allowed is True
    assert status.remaining == 5


def test_blocked_after_limit():
    store = SearchQuotaStore(limit=5, today=_Clock(date(2025, 11, 15)))
    remaining = [store.record_usage("u1") for _ in range(5)]
    assert remaining == [4, 3, 2, 1, 0]
    status = store.can_use("u1")
    assert status.allowed is False
    assert status.remaining == 0


def test_users_counted_separately():
    store = SearchQuotaStore(limit=2, today=_Clock(date(2025, 11, 15)))
    store.record_usage("u1")
    store.record_usage("u1")
    assert store.can_use("u1").allowed is False
    assert store.can_use("u2").allowed is True


def test_resets_when_local_day_changes():
    clock = _Clock(date(2025, 11, 15))
    store = SearchQuotaStore(limit=5, today=clock)
    for _ in range(5):
        store.record_usage("u1")
    assert store.can_use("u1").allowed is False

    clock.day += timedelta(days=1)

    status = store.can_use("u1")
    assert status.allowed is True
    assert status.remaining == 5
