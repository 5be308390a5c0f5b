"""Pytest configuration and fixtures."""

import json
import os
import sys

import httpx
import pytest
from unittest.mock import AsyncMock, patch

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domains.reminders.models import PushSubscription, Reminder

SUPABASE_URL = "https://project.supabase.co"
SUPABASE_KEY = "anon-key"


class FakePostgrest:
    """Scripted PostgREST backend for httpx.MockTransport.

    Responses are queued per (method, table). The last queued response for a
    key is reused once the queue is down to one entry; unscripted requests
    get 200 [].
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._responses: dict[tuple[str, str], list] = {}

    def respond(self, method: str, table: str, status: int = 200, json_body=None, error=None):
        self._responses.setdefault((method, table), []).append((status, json_body, error))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rstrip("/").rsplit("/", 1)[-1]
        queue = self._responses.get((request.method, table))
        if not queue:
            return httpx.Response(200, json=[])

        status, body, error = queue.pop(0) if len(queue) > 1 else queue[0]
        if error is not None:
            raise error
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, table: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(f"/{table}")
        ]

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content) if request.content else None


class FakeReminderStore:
    """In-memory stand-in for ReminderStore used by dispatcher and ticker tests."""

    def __init__(self, due=None, reminders=None, emails=None, subscriptions=None):
        self.due = list(due or [])
        self.reminders = list(reminders or [])
        self.emails = dict(emails or {})
        self.subscriptions = dict(subscriptions or {})
        self.dispatched: list[tuple] = []
        self.deliveries: list = []
        self.removed: list[str] = []
        self.toggled: list[tuple] = []
        self.list_due_error: Exception | None = None
        self.list_error: Exception | None = None
        self.email_error: Exception | None = None

    async def list_due(self, now, limit):
        if self.list_due_error:
            raise self.list_due_error
        return self.due[:limit]

    async def list_reminders(self):
        if self.list_error:
            raise self.list_error
        return self.reminders

    async def record_dispatch(self, reminder_id, next_run_at, sent_at=None):
        self.dispatched.append((reminder_id, next_run_at, sent_at))

    async def log_delivery(self, entry):
        self.deliveries.append(entry)

    async def get_profile_email(self, user_id):
        if self.email_error:
            raise self.email_error
        return self.emails.get(user_id)

    async def list_push_subscriptions(self, user_id):
        return list(self.subscriptions.get(user_id, []))

    async def remove_push_subscription(self, endpoint):
        self.removed.append(endpoint)
        return True

    async def toggle_reminder(self, reminder_id, enabled):
        self.toggled.append((reminder_id, enabled))


@pytest.fixture
def postgrest():
    """Scripted Supabase REST backend."""
    return FakePostgrest()


@pytest.fixture
def fake_store():
    """Factory for in-memory reminder stores."""
    return FakeReminderStore


@pytest.fixture
def make_reminder():
    """Factory for Reminder records with sensible defaults."""
    def _make(reminder_id="r1", **kwargs):
        kwargs.setdefault("user_id", "user-1")
        kwargs.setdefault("title", "Drink water")
        kwargs.setdefault("message", "Glass of water")
        return Reminder(id=reminder_id, **kwargs)
    return _make


@pytest.fixture
def make_subscription():
    def _make(endpoint="https://push.example.com/sub/1", user_id="user-1"):
        return PushSubscription(endpoint=endpoint, p256dh="p256dh-key", auth="auth-key", user_id=user_id)
    return _make


@pytest.fixture
def api_client(postgrest):
    """FastAPI TestClient with an authenticated user session backed by FakePostgrest."""
    from fastapi.testclient import TestClient

    from supabase_client import SupabaseClient
    from timora_api.deps import UserSession, user_session
    from timora_api.main import app

    async def _session():
        client = SupabaseClient(SUPABASE_URL, SUPABASE_KEY, access_token="jwt", transport=postgrest.transport)
        await client.connect()
        try:
            yield UserSession(user_id="user-1", client=client)
        finally:
            await client.dispose()

    app.dependency_overrides[user_session] = _session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx client."""
    with patch('httpx.AsyncClient') as mock:
        client = AsyncMock()
        mock.return_value.__aenter__.return_value = client
        yield client
