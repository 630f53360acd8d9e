"""Tests for sync and runtime settings endpoints."""

from pesaledger.services.remote_store import ACCOUNTS


def enable_sync(client):
    response = client.patch("/api/v1/settings", json={"sync_enabled": True})
    assert response.json()["sync_enabled"] is True


class TestSettingsAPI:

    def test_get_settings(self, client):
        data = client.get("/api/v1/settings").json()
        assert data["sync_enabled"] is False
        assert data["auto_categorize_enabled"] is True
        assert data["provider_sender_pattern"] == "MPESA"

    def test_partial_update(self, client):
        data = client.patch("/api/v1/settings", json={"auto_categorize_enabled": False}).json()
        assert data["auto_categorize_enabled"] is False
        assert data["sync_enabled"] is False


class TestSyncAPI:

    def test_status_when_signed_out(self, client):
        data = client.get("/api/v1/sync/status").json()
        assert data["state"] == "idle"
        assert data["connected"] is True
        assert data["user_id"] is None
        assert data["can_sync"] is False

    def test_run_skipped_when_disabled(self, client):
        data = client.post("/api/v1/sync/run", json={"trigger": "manual"}).json()
        assert data == {"ran": False, "state": "idle", "report": None}

    def test_sign_in_restores_defaults_then_force_push(self, client, remote_store):
        enable_sync(client)

        data = client.post("/api/v1/sync/sign-in", json={"user_id": "user-9"}).json()
        assert data["ran"] is True
        assert data["state"] == "completed"
        assert data["report"]["protocol"] == "sign_in"

        names = {a["name"] for a in client.get("/api/v1/accounts").json()["items"]}
        assert names == {"M-Pesa", "Pochi La Biashara", "M-Shwari", "Cash"}

        data = client.post("/api/v1/sync/force").json()
        assert data["report"]["protocol"] == "push_only"
        assert len(remote_store.list_documents("user-9", ACCOUNTS)) == 4

        status = client.get("/api/v1/sync/status").json()
        assert status["user_id"] == "user-9"
        assert status["can_sync"] is True

    def test_sign_out(self, client):
        enable_sync(client)
        client.post("/api/v1/sync/sign-in", json={"user_id": "user-9"})

        data = client.post("/api/v1/sync/sign-out").json()
        assert data["user_id"] is None
        assert data["can_sync"] is False

    def test_unreachable_remote(self, client, remote_store):
        enable_sync(client)
        client.post("/api/v1/sync/sign-in", json={"user_id": "user-9"})
        remote_store.online = False

        data = client.post("/api/v1/sync/run", json={"trigger": "periodic"}).json()
        assert data["ran"] is False
        assert data["state"] == "error"
        assert client.get("/api/v1/sync/status").json()["last_error"]

    def test_connectivity_regained_triggers_sync(self, client):
        enable_sync(client)
        client.post("/api/v1/sync/sign-in", json={"user_id": "user-9"})

        data = client.post("/api/v1/sync/connectivity", json={"connected": False}).json()
        assert data["ran"] is False
        assert data["state"] == "offline"
        assert client.get("/api/v1/health").json()["sync"] == "offline"

        data = client.post("/api/v1/sync/connectivity", json={"connected": True}).json()
        assert data["ran"] is True
        assert data["report"]["protocol"] == "push_then_merge"

    def test_unknown_trigger_rejected(self, client):
        assert client.post("/api/v1/sync/run", json={"trigger": "hourly"}).status_code == 422
