"""Tests for reminder and snapshot API routes."""

import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

import config
from timora_api.main import app


@pytest.fixture
def client():
    return TestClient(app)


class TestAuth:
    """Bearer handling on user-scoped routes."""

    def test_missing_token(self, client):
        assert client.get("/reminders").status_code == 401

    def test_backend_not_configured(self, client):
        with patch("timora_api.deps.create_user_client", return_value=None):
            response = client.get("/reminders", headers={"Authorization": "Bearer jwt"})
        assert response.status_code == 503


class TestReminderRoutes:
    """CRUD through the user session."""

    def test_list(self, api_client, postgrest):
        postgrest.respond("GET", "reminders", json_body=[
            {"id": "r1", "title": "Stretch", "recurrence": "daily", "next_run_at": "2024-01-01T09:00:00Z"},
        ])

        response = api_client.get("/reminders")

        assert response.status_code == 200
        reminder = response.json()["reminders"][0]
        assert reminder["title"] == "Stretch"
        assert reminder["next_run_at"] == "2024-01-01T09:00:00Z"

    def test_create_sets_owner(self, api_client, postgrest):
        postgrest.respond("POST", "reminders", status=201, json_body=[{"id": "r9", "title": "Meds"}])

        response = api_client.post("/reminders", json={
            "title": "Meds", "time": "08:00", "recurrence": "daily", "start_date": "2030-01-01"
        })

        assert response.status_code == 200
        assert response.json()["id"] == "r9"
        body = postgrest.body(postgrest.calls("POST", "reminders")[0])
        assert body["user_id"] == "user-1"
        assert body["next_run_at"] == "2030-01-01T08:00:00Z"

    def test_toggle_missing_reminder(self, api_client):
        response = api_client.post("/reminders/nope/toggle", json={"enabled": False})
        assert response.status_code == 404

    def test_update(self, api_client, postgrest):
        postgrest.respond("PATCH", "reminders", json_body=[{"id": "r1", "title": "Walk"}])

        response = api_client.patch("/reminders/r1", json={"title": "Walk"})

        assert response.status_code == 200
        assert postgrest.body(postgrest.calls("PATCH", "reminders")[0]) == {"title": "Walk"}

    def test_delete(self, api_client, postgrest):
        response = api_client.delete("/reminders/r1")

        assert response.json() == {"success": True, "deleted": "r1"}
        assert postgrest.calls("DELETE", "reminders")[0].url.params["id"] == "eq.r1"

    def test_backend_error_status(self, api_client, postgrest):
        postgrest.respond("POST", "reminders", status=403, json_body={"message": "RLS violation"})

        response = api_client.post("/reminders", json={"title": "x"})

        assert response.status_code == 403


class TestManualDispatch:
    """POST /reminders/dispatch."""

    def test_not_configured_skips(self, client, monkeypatch):
        monkeypatch.setattr(config, "DISPATCH_SECRET", None)
        with patch("timora_api.reminder_routes.create_service_client", return_value=None):
            response = client.post("/reminders/dispatch")

        assert response.status_code == 200
        assert response.text == "Supabase not configured. Skipping."

    def test_secret_is_enforced(self, client, monkeypatch):
        monkeypatch.setattr(config, "DISPATCH_SECRET", "s3cret")

        assert client.post("/reminders/dispatch").status_code == 401
        with patch("timora_api.reminder_routes.create_service_client", return_value=None):
            ok = client.post("/reminders/dispatch", headers={"X-Dispatch-Secret": "s3cret"})
        assert ok.status_code == 200


class TestSnapshotRoutes:
    """Snapshot and recovery log endpoints."""

    def test_unknown_snapshot(self, api_client):
        assert api_client.get("/snapshots/mood").status_code == 404

    def test_get_seeds_recovery(self, api_client, postgrest):
        response = api_client.get("/snapshots/recovery")

        assert response.status_code == 200
        assert response.json()["substance"] == "alcohol"
        assert postgrest.calls("POST", "recovery_snapshot")

    def test_patch_merges(self, api_client, postgrest):
        postgrest.respond("GET", "sleep_snapshot", json_body=[
            {"user_id": "user-1", "environment": {"noise": "low", "light": "dark"}},
        ])

        response = api_client.patch("/snapshots/sleep", json={"environment": {"noise": "high"}})

        assert response.status_code == 200
        upsert = postgrest.body(postgrest.calls("POST", "sleep_snapshot")[0])
        assert upsert["environment"] == {"noise": "high", "light": "dark"}

    def test_recovery_log_accepts_camel_case(self, api_client, postgrest):
        response = api_client.post("/recovery/logs", json={
            "type": "craving", "cravingLevel": 6, "urgeDurationMin": 15
        })

        assert response.status_code == 200
        assert response.json()["ok"] is True
        row = postgrest.body(postgrest.calls("POST", "recovery_logs")[0])
        assert row["craving_level"] == 6
        assert row["urge_duration_min"] == 15

    def test_recovery_log_rejects_unknown_type(self, api_client):
        assert api_client.post("/recovery/logs", json={"type": "party"}).status_code == 400

    def test_list_recovery_logs(self, api_client, postgrest):
        postgrest.respond("GET", "recovery_logs", json_body=[{"id": 1}])

        response = api_client.get("/recovery/logs", params={"limit": 10})

        assert response.json() == {"logs": [{"id": 1}]}
        assert postgrest.calls("GET", "recovery_logs")[0].url.params["limit"] == "10"


class TestRecoveryRecordRoutes:
    """Triggers, relapses, supports and insights endpoints."""

    def test_list_triggers(self, api_client, postgrest):
        postgrest.respond("GET", "recovery_triggers", json_body=[{"id": 1, "label": "Payday"}])

        response = api_client.get("/recovery/triggers")

        assert response.json() == {"triggers": [{"id": 1, "label": "Payday"}]}

    def test_logs_route_is_not_a_record_kind(self, api_client, postgrest):
        postgrest.respond("GET", "recovery_logs", json_body=[{"id": 5}])

        assert api_client.get("/recovery/logs").json() == {"logs": [{"id": 5}]}

    def test_unknown_kind(self, api_client):
        assert api_client.get("/recovery/sponsors").status_code == 404

    def test_create_support(self, api_client, postgrest):
        postgrest.respond("POST", "recovery_supports", status=201, json_body=[{"id": 2, "name": "Sam"}])

        response = api_client.post("/recovery/supports", json={"name": "Sam"})

        assert response.status_code == 200
        assert response.json() == {"id": 2, "name": "Sam"}
        assert postgrest.body(postgrest.calls("POST", "recovery_supports")[0])["user_id"] == "user-1"

    def test_create_without_required_field(self, api_client):
        assert api_client.post("/recovery/triggers", json={"notes": "x"}).status_code == 400

    def test_update_missing_record(self, api_client):
        assert api_client.patch("/recovery/relapses/9", json={"intensity": 3}).status_code == 404

    def test_delete_relapse(self, api_client, postgrest):
        response = api_client.delete("/recovery/relapses/9")

        assert response.json() == {"ok": True}
        assert postgrest.calls("DELETE", "recovery_relapses")[0].url.params["id"] == "eq.9"

    def test_insights(self, api_client, postgrest):
        postgrest.respond("GET", "recovery_snapshot", json_body=[
            {"user_id": "user-1", "pattern": {"stage": "action", "daysSober": 0}},
        ])

        body = api_client.get("/recovery/insights").json()

        assert body["score"] == 100
        assert body["readiness"] == "action"
        assert len(body["suggestions"]) == 3
