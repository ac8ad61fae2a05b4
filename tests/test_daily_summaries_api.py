"""
Integration tests for PUT /api/daily-summaries/{date} and the reflection
sync it queues. TestClient runs background tasks before returning, so the
refreshed reflections are visible right after the call.
"""
from datetime import date

from app.core.errors import GenerationFailedError
from app.main import app
from app.models.daily_summary import DailySummary
from app.routers.daily_summaries import get_sync_model
from app.services.daily_summaries import upsert_daily_summary
from conftest import DEFAULT_REPLY, add_summary

PAYLOAD = {
    "summary": "Long walk, finished chapter three.",
    "entryCount": 2,
    "moodQuality": "good",
    "dominantEmotions": ["Calm", "Proud"],
}


def _put(client, headers, day="2025-11-13", payload=None):
    return client.put(f"/api/daily-summaries/{day}", json=payload or PAYLOAD, headers=headers)


class TestPutDailySummary:
    def test_creates_summary_and_syncs_every_period(self, client, headers, fake_model):
        r = _put(client, headers)
        assert r.status_code == 200
        body = r.json()
        assert body["date"] == "2025-11-13"
        assert body["summary"] == PAYLOAD["summary"]
        assert body["entryCount"] == 2
        assert body["dominantEmotions"] == ["Calm", "Proud"]
        assert body["edited"] is False
        assert body["syncScheduled"] is True

        assert len(fake_model.calls) == 3
        daily = client.get("/api/reflections/daily", headers=headers).json()["cards"]
        assert daily[0]["achievements"] == DEFAULT_REPLY["achievements"]
        assert len(client.get("/api/reflections/weekly", headers=headers).json()["cards"]) == 1
        assert len(client.get("/api/reflections/monthly", headers=headers).json()["cards"]) == 1

    def test_update_keeps_one_row_and_user_edits(self, client, headers):
        first = _put(client, headers).json()
        client.patch("/api/reflections/daily/2025-11-13", json={"flashback": "My moment"}, headers=headers)

        second = _put(client, headers, payload={**PAYLOAD, "summary": "Rewritten.", "entryCount": 3})

        assert second.status_code == 200
        assert second.json()["id"] == first["id"]
        assert second.json()["summary"] == "Rewritten."
        assert second.json()["edited"] is True

        daily = client.get("/api/reflections/daily", headers=headers).json()["cards"]
        assert len(daily) == 1
        assert daily[0]["flashback"] == "My moment"

    def test_failed_mode_does_not_fail_request(self, client, headers, fake_model):
        fake_model.replies = [DEFAULT_REPLY, GenerationFailedError(message="boom"), DEFAULT_REPLY]
        r = _put(client, headers)
        assert r.status_code == 200
        assert client.get("/api/reflections/weekly", headers=headers).json()["cards"] == []
        assert len(client.get("/api/reflections/monthly", headers=headers).json()["cards"]) == 1

    def test_no_model_configured_skips_sync(self, client, headers, fake_model):
        app.dependency_overrides[get_sync_model] = lambda: None
        r = _put(client, headers)
        assert r.status_code == 200
        assert r.json()["syncScheduled"] is False
        assert fake_model.calls == []

    def test_invalid_date(self, client, headers):
        assert _put(client, headers, day="2025-02-29").status_code == 422

    def test_blank_summary_rejected(self, client, headers):
        r = _put(client, headers, payload={**PAYLOAD, "summary": "   "})
        assert r.status_code == 422

    def test_negative_entry_count_rejected(self, client, headers):
        r = _put(client, headers, payload={**PAYLOAD, "entryCount": -1})
        assert r.status_code == 422


class TestUpsertDailySummary:
    def test_lost_insert_race_updates_existing_row(self, db, user_id, monkeypatch):
        from app.services import daily_summaries

        existing = add_summary(db, user_id, date(2025, 11, 13), summary="First.", flashback="Mine", edited=True)

        real_find = daily_summaries._find
        lookups = []

        def stale_find(*args, **kwargs):
            lookups.append(args)
            return None if len(lookups) == 1 else real_find(*args, **kwargs)

        monkeypatch.setattr(daily_summaries, "_find", stale_find)

        row = upsert_daily_summary(db, user_id, date(2025, 11, 13), summary="Second.", entry_count=4)

        assert len(lookups) == 2
        assert row.id == existing.id
        assert row.summary == "Second."
        assert row.entry_count == 4
        assert row.flashback == "Mine"
        assert row.edited is True
        db.expire_all()
        assert db.query(DailySummary).filter_by(user_id=user_id).count() == 1
