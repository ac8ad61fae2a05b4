"""
Integration tests for the /api/reflections endpoints.
"""
import uuid
from datetime import date

from app.models.daily_summary import DailySummary
from conftest import DEFAULT_REPLY, add_summary

DAY = date(2025, 11, 13)


class TestSync:
    def test_daily_sync(self, client, db, headers, user_id, fake_model):
        add_summary(db, user_id, DAY)
        r = client.post(
            "/api/reflections/sync",
            json={"mode": "daily", "anchorDate": "2025-11-13"},
            headers=headers,
        )
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        card = body["card"]
        assert card["period"] == {"type": "daily", "start": "2025-11-13", "end": "2025-11-13", "date": "2025-11-13"}
        assert card["achievements"] == DEFAULT_REPLY["achievements"]
        assert card["genVersion"] == "reflection-v1"
        assert len(fake_model.calls) == 1

    def test_weekly_sync(self, client, db, headers, user_id):
        add_summary(db, user_id, date(2025, 11, 11))
        r = client.post(
            "/api/reflections/sync",
            json={"mode": "weekly", "anchorDate": "2025-11-16"},
            headers=headers,
        )
        assert r.status_code == 200
        period = r.json()["card"]["period"]
        assert period == {"type": "weekly", "start": "2025-11-10", "end": "2025-11-16"}

    def test_no_data(self, client, headers, fake_model):
        r = client.post(
            "/api/reflections/sync",
            json={"mode": "monthly", "anchorDate": "2025-11-13"},
            headers=headers,
        )
        assert r.status_code == 404
        assert r.json()["code"] == "NO_DATA_FOR_PERIOD"
        assert fake_model.calls == []

    def test_bad_model_reply(self, client, db, headers, user_id, fake_model):
        add_summary(db, user_id, DAY)
        fake_model.replies = ["```json nope```"]
        r = client.post(
            "/api/reflections/sync",
            json={"mode": "daily", "anchorDate": "2025-11-13"},
            headers=headers,
        )
        assert r.status_code == 500
        assert r.json()["code"] == "GENERATION_FAILED"

    def test_schema_failure(self, client, db, headers, user_id, fake_model):
        add_summary(db, user_id, DAY)
        fake_model.replies = [{**DEFAULT_REPLY, "mood": {"overall": "ok"}}]
        r = client.post(
            "/api/reflections/sync",
            json={"mode": "daily", "anchorDate": "2025-11-13"},
            headers=headers,
        )
        assert r.status_code == 500
        assert r.json()["code"] == "SCHEMA_VALIDATION_FAILED"

    def test_anchor_pattern_enforced(self, client, headers):
        r = client.post("/api/reflections/sync", json={"mode": "daily", "anchorDate": "13/11/2025"}, headers=headers)
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_impossible_anchor_date(self, client, headers):
        r = client.post("/api/reflections/sync", json={"mode": "daily", "anchorDate": "2025-02-30"}, headers=headers)
        assert r.status_code == 422
        assert r.json()["code"] == "INVALID_DATE_FORMAT"

    def test_extra_fields_rejected(self, client, headers):
        r = client.post(
            "/api/reflections/sync",
            json={"mode": "daily", "anchorDate": "2025-11-13", "force": True},
            headers=headers,
        )
        assert r.status_code == 422


class TestDailyList:
    def test_newest_first_and_start_filter(self, client, db, headers, user_id):
        for d in (1, 5, 3, 9):
            add_summary(db, user_id, date(2025, 11, d))

        r = client.get("/api/reflections/daily", headers=headers)
        assert [c["period"]["date"] for c in r.json()["cards"]] == [
            "2025-11-09", "2025-11-05", "2025-11-03", "2025-11-01",
        ]

        r = client.get("/api/reflections/daily?start=2025-11-05&limit=2", headers=headers)
        assert [c["period"]["date"] for c in r.json()["cards"]] == ["2025-11-05", "2025-11-03"]

    def test_limit_capped_at_30(self, client, db, headers, user_id):
        for d in range(1, 32):
            add_summary(db, user_id, date(2025, 12, d))
        r = client.get("/api/reflections/daily?limit=100", headers=headers)
        assert r.status_code == 200
        assert len(r.json()["cards"]) == 30

    def test_other_users_rows_hidden(self, client, db, headers, user_id):
        add_summary(db, f"{user_id}-x", DAY)
        r = client.get("/api/reflections/daily", headers=headers)
        assert r.json()["cards"] == []

    def test_bad_start(self, client, headers):
        r = client.get("/api/reflections/daily?start=yesterday", headers=headers)
        assert r.status_code == 422


class TestPatchDaily:
    def test_patch_marks_edited_and_keeps_generation_metadata(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        client.post("/api/reflections/sync", json={"mode": "daily", "anchorDate": "2025-11-13"}, headers=headers)
        before = client.get("/api/reflections/daily", headers=headers).json()["cards"][0]

        r = client.patch(
            "/api/reflections/daily/2025-11-13",
            json={"achievements": ["Called grandma"], "moodOverall": "grateful"},
            headers=headers,
        )
        assert r.status_code == 200
        card = r.json()["card"]
        assert card["edited"] is True
        assert card["achievements"] == ["Called grandma"]
        assert card["moodOverall"] == "grateful"
        assert card["commitments"] == before["commitments"]
        assert card["genVersion"] == before["genVersion"]
        assert card["lastGeneratedAt"] == before["lastGeneratedAt"]

    def test_edit_survives_resync(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        client.patch("/api/reflections/daily/2025-11-13", json={"flashback": "Mine"}, headers=headers)

        r = client.post("/api/reflections/sync", json={"mode": "daily", "anchorDate": "2025-11-13"}, headers=headers)

        card = r.json()["card"]
        assert card["flashback"] == "Mine"
        assert card["achievements"] == []
        assert card["stats"] == DEFAULT_REPLY["stats"]

    def test_explicit_null_clears_field(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY, flashback="Old", mood_reason="Because")
        r = client.patch(
            "/api/reflections/daily/2025-11-13",
            json={"flashback": None, "moodOverall": "fine"},
            headers=headers,
        )
        card = r.json()["card"]
        assert card["flashback"] is None
        assert card["moodReason"] == "Because"

    def test_null_list_rejected(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY, achievements=["kept"])
        r = client.patch(
            "/api/reflections/daily/2025-11-13",
            json={"achievements": None, "flashback": "x"},
            headers=headers,
        )
        assert r.status_code == 422
        assert r.json()["details"]["errors"][0]["field"] == "achievements"

        db.expire_all()
        row = db.query(DailySummary).filter_by(user_id=user_id, date=DAY).one()
        assert row.achievements == ["kept"]
        assert row.edited is False

    def test_empty_list_clears_items(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY, commitments=["Old promise"])
        r = client.patch("/api/reflections/daily/2025-11-13", json={"commitments": []}, headers=headers)
        assert r.status_code == 200
        assert r.json()["card"]["commitments"] == []

    def test_missing_row(self, client, headers):
        r = client.patch("/api/reflections/daily/2025-11-13", json={"flashback": "x"}, headers=headers)
        assert r.status_code == 404
        assert r.json()["code"] == "NOT_FOUND"

    def test_empty_payload(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        assert client.patch("/api/reflections/daily/2025-11-13", json={}, headers=headers).status_code == 422
        r = client.patch("/api/reflections/daily/2025-11-13", json={"flashback": None}, headers=headers)
        assert r.status_code == 422

    def test_too_many_achievements(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        r = client.patch(
            "/api/reflections/daily/2025-11-13",
            json={"achievements": ["a", "b", "c", "d"]},
            headers=headers,
        )
        assert r.status_code == 422

    def test_unknown_field(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        r = client.patch("/api/reflections/daily/2025-11-13", json={"edited": False}, headers=headers)
        assert r.status_code == 422

    def test_does_not_touch_other_days(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        add_summary(db, user_id, date(2025, 11, 14))
        client.patch("/api/reflections/daily/2025-11-13", json={"flashback": "x"}, headers=headers)
        db.expire_all()
        other = db.query(DailySummary).filter_by(user_id=user_id, date=date(2025, 11, 14)).one()
        assert other.edited is False


class TestPeriods:
    def _sync(self, client, headers, mode, anchor):
        r = client.post("/api/reflections/sync", json={"mode": mode, "anchorDate": anchor}, headers=headers)
        assert r.status_code == 200
        return r.json()["card"]

    def test_weekly_list_newest_first(self, client, db, headers, user_id):
        add_summary(db, user_id, date(2025, 11, 4))
        add_summary(db, user_id, date(2025, 11, 13))
        self._sync(client, headers, "weekly", "2025-11-04")
        self._sync(client, headers, "weekly", "2025-11-13")
        self._sync(client, headers, "monthly", "2025-11-13")

        cards = client.get("/api/reflections/weekly", headers=headers).json()["cards"]
        assert [c["period"]["start"] for c in cards] == ["2025-11-10", "2025-11-03"]
        assert all("date" not in c["period"] for c in cards)

        monthly = client.get("/api/reflections/monthly", headers=headers).json()["cards"]
        assert [c["period"]["start"] for c in monthly] == ["2025-11-01"]

    def test_monthly_limit(self, client, db, headers, user_id):
        for month in (1, 2, 3):
            add_summary(db, user_id, date(2025, month, 10))
            self._sync(client, headers, "monthly", f"2025-{month:02d}-10")
        cards = client.get("/api/reflections/monthly?limit=2", headers=headers).json()["cards"]
        assert [c["period"]["start"] for c in cards] == ["2025-03-01", "2025-02-01"]

    def test_patch_period(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        card = self._sync(client, headers, "weekly", "2025-11-13")

        r = client.patch(
            f"/api/reflections/period/{card['recordId']}",
            json={"commitments": ["Rest on Sunday"]},
            headers=headers,
        )
        assert r.status_code == 200
        patched = r.json()["card"]
        assert patched["edited"] is True
        assert patched["commitments"] == ["Rest on Sunday"]
        assert patched["achievements"] == card["achievements"]

        resynced = self._sync(client, headers, "weekly", "2025-11-13")
        assert resynced["commitments"] == ["Rest on Sunday"]
        assert resynced["recordId"] == card["recordId"]

    def test_patch_period_other_user(self, client, db, headers, user_id):
        add_summary(db, user_id, DAY)
        card = self._sync(client, headers, "weekly", "2025-11-13")
        r = client.patch(
            f"/api/reflections/period/{card['recordId']}",
            json={"flashback": "x"},
            headers={"X-User-Id": f"{user_id}-intruder"},
        )
        assert r.status_code == 404

    def test_patch_period_unknown_id(self, client, headers):
        r = client.patch(f"/api/reflections/period/{uuid.uuid4()}", json={"flashback": "x"}, headers=headers)
        assert r.status_code == 404

    def test_patch_period_malformed_id(self, client, headers):
        r = client.patch("/api/reflections/period/not-a-uuid", json={"flashback": "x"}, headers=headers)
        assert r.status_code == 422
