"""Tests for push subscription routes."""

import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from supabase_client import SupabaseClient
from timora_api.main import app

ENDPOINT = "https://fcm.googleapis.com/fcm/send/abc123"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def service_backend(postgrest):
    """Route the service-role client to FakePostgrest."""
    def _factory():
        return SupabaseClient("https://project.supabase.co", "service", transport=postgrest.transport)

    with patch("timora_api.push_routes.create_service_client", side_effect=_factory):
        yield postgrest


class TestUnsubscribe:
    """POST /push/unsubscribe."""

    def test_missing_endpoint(self, client, service_backend):
        response = client.post("/push/unsubscribe", json={})

        assert response.status_code == 400
        assert response.text == "Missing endpoint"
        assert service_backend.requests == []

    def test_malformed_body(self, client, service_backend):
        response = client.post("/push/unsubscribe", content=b"nope")
        assert response.status_code == 400

    def test_deletes_by_endpoint(self, client, service_backend):
        response = client.post("/push/unsubscribe", json={"endpoint": ENDPOINT})

        assert response.status_code == 200
        assert response.text == "OK"
        request = service_backend.calls("DELETE", "push_subscriptions")[0]
        assert request.url.params["endpoint"] == f"eq.{ENDPOINT}"
        assert request.headers["apikey"] == "service"

    def test_backend_failure(self, client, service_backend):
        service_backend.respond("DELETE", "push_subscriptions", status=500, json_body={"message": "down"})

        response = client.post("/push/unsubscribe", json={"endpoint": ENDPOINT})

        assert response.status_code == 500
        assert response.text == "Error"

    def test_not_configured(self, client):
        with patch("timora_api.push_routes.create_service_client", return_value=None):
            response = client.post("/push/unsubscribe", json={"endpoint": ENDPOINT})

        assert response.status_code == 500
        assert response.text == "Error"


class TestSubscribe:
    """POST /push/subscribe."""

    def test_requires_bearer_token(self, client):
        response = client.post("/push/subscribe", json={
            "endpoint": ENDPOINT, "keys": {"p256dh": "p", "auth": "a"}
        })
        assert response.status_code == 401

    def test_saves_for_caller(self, api_client, postgrest):
        response = api_client.post("/push/subscribe", json={
            "endpoint": ENDPOINT,
            "keys": {"p256dh": "p", "auth": "a"},
            "userAgent": "Firefox/120"
        })

        assert response.status_code == 200
        body = postgrest.body(postgrest.calls("POST", "push_subscriptions")[0])
        assert body == {
            "endpoint": ENDPOINT,
            "p256dh": "p",
            "auth": "a",
            "user_id": "user-1",
            "user_agent": "Firefox/120",
        }
        assert response.json()["endpoint"] == ENDPOINT

    def test_rejects_missing_keys(self, api_client):
        assert api_client.post("/push/subscribe", json={"endpoint": ENDPOINT}).status_code == 422
