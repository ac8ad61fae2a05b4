"""
Integration test for the liveness probe.
"""


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.json()["db"] == "ok"

    def test_health_needs_no_user(self, client):
        assert client.get("/health", headers={}).status_code == 200
