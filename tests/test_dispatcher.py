"""Tests for the server-side reminder dispatcher."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from domains.reminders.channels import ChannelRegistry, ChannelResult, NotificationChannel
from domains.reminders.dispatcher import ReminderDispatcher

NOW = datetime(2024, 1, 1, 9, 5, tzinfo=timezone.utc)


class RecordingChannel(NotificationChannel):
    """Channel that records sends and fails on demand."""

    def __init__(self, name, requires=(), raise_for=(), gone=()):
        self._name = name
        self.requires = frozenset(requires)
        self.raise_for = set(raise_for)
        self.gone = set(gone)
        self.sent = []

    @property
    def name(self):
        return self._name

    def targets(self, recipient):
        if "subscriptions" in self.requires:
            return list(recipient.subscriptions)
        if "email" in self.requires:
            return [recipient.email] if recipient.email else []
        return [recipient.user_id]

    async def send(self, target, payload):
        key = getattr(target, "endpoint", target)
        self.sent.append((key, payload))
        if key in self.raise_for:
            raise RuntimeError(f"send exploded for {key}")
        if key in self.gone:
            return ChannelResult(self._name, key, ok=False, status_code=410, gone=True, error="Gone")
        return ChannelResult(self._name, key, ok=True)


def registry_of(*channels):
    registry = ChannelRegistry()
    for channel in channels:
        registry.register(channel)
    return registry


class TestDispatchRun:
    """End-to-end behaviour of one dispatcher run."""

    @pytest.mark.asyncio
    async def test_daily_reminder_is_rescheduled_and_logged(self, fake_store, make_reminder):
        reminder = make_reminder(recurrence="DAILY", next_run_at=datetime(2024, 1, 1, 9, tzinfo=timezone.utc))
        store = fake_store(due=[reminder])
        channel = RecordingChannel("inbox")

        report = await ReminderDispatcher(store, registry_of(channel)).run(NOW)

        assert (report.status_code, report.body) == (200, "OK")
        assert store.dispatched == [("r1", datetime(2024, 1, 2, 9, tzinfo=timezone.utc), NOW)]
        assert len(store.deliveries) == 1
        entry = store.deliveries[0]
        assert entry.status == "ok"
        assert entry.channel == "email_push"
        assert entry.meta["next_run_at"] == "2024-01-02T09:00:00Z"

    @pytest.mark.asyncio
    async def test_one_time_reminder_has_no_next_run(self, fake_store, make_reminder):
        reminder = make_reminder(recurrence="", next_run_at=datetime(2024, 1, 1, 9, tzinfo=timezone.utc))
        store = fake_store(due=[reminder])

        await ReminderDispatcher(store, registry_of(RecordingChannel("inbox"))).run(NOW)

        assert store.dispatched[0][1] is None
        assert store.deliveries[0].meta["next_run_at"] is None

    @pytest.mark.asyncio
    async def test_failure_in_one_reminder_does_not_stop_the_batch(self, fake_store, make_reminder):
        reminders = [make_reminder(f"r{i}", user_id=f"user-{i}", recurrence="daily") for i in range(1, 4)]
        store = fake_store(due=reminders)
        channel = RecordingChannel("inbox", raise_for={"user-2"})

        report = await ReminderDispatcher(store, registry_of(channel)).run(NOW)

        assert report.status_code == 200
        assert report.processed == 3
        assert report.failed == 1
        assert [e.reminder_id for e in store.deliveries] == ["r1", "r2", "r3"]
        assert [e.status for e in store.deliveries] == ["ok", "error", "ok"]
        assert "send exploded" in store.deliveries[1].error
        # Every reminder is rolled forward, including the failed one
        assert [d[0] for d in store.dispatched] == ["r1", "r2", "r3"]

    @pytest.mark.asyncio
    async def test_gone_push_endpoint_is_removed_and_not_retried(
        self, fake_store, make_reminder, make_subscription
    ):
        stale = make_subscription("https://push.example.com/sub/stale")
        fresh = make_subscription("https://push.example.com/sub/fresh")
        reminders = [make_reminder("r1", recurrence="daily"), make_reminder("r2", recurrence="daily")]
        store = fake_store(due=reminders, subscriptions={"user-1": [stale, fresh]})
        push = RecordingChannel("push", requires={"subscriptions"}, gone={stale.endpoint})

        await ReminderDispatcher(store, registry_of(push)).run(NOW)

        assert store.removed == [stale.endpoint]
        attempts = [endpoint for endpoint, _ in push.sent]
        assert attempts.count(stale.endpoint) == 1
        assert attempts.count(fresh.endpoint) == 2
        assert store.deliveries[0].status == "error"

    @pytest.mark.asyncio
    async def test_email_channel_uses_profile_email(self, fake_store, make_reminder):
        store = fake_store(due=[make_reminder(recurrence="daily")], emails={"user-1": "me@example.com"})
        email = RecordingChannel("email", requires={"email"})

        await ReminderDispatcher(store, registry_of(email)).run(NOW)

        target, payload = email.sent[0]
        assert target == "me@example.com"
        assert payload.title == "Drink water"
        assert payload.data == {"reminderId": "r1"}

    @pytest.mark.asyncio
    async def test_no_due_reminders(self, fake_store):
        report = await ReminderDispatcher(fake_store(), registry_of()).run(NOW)
        assert (report.status_code, report.body) == (200, "No due reminders.")

    @pytest.mark.asyncio
    async def test_selection_failure_is_db_error(self, fake_store):
        store = fake_store()
        store.list_due_error = RuntimeError("connection refused")

        report = await ReminderDispatcher(store, registry_of()).run(NOW)

        assert (report.status_code, report.body) == (500, "DB error")

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_internal_error(self, fake_store, make_reminder):
        dispatcher = ReminderDispatcher(fake_store(due=[make_reminder()]), registry_of())

        with patch.object(dispatcher, "_process", side_effect=RuntimeError("boom")):
            report = await dispatcher.run(NOW)

        assert (report.status_code, report.body) == (500, "Internal error")

    @pytest.mark.asyncio
    async def test_batch_limit_is_passed_to_selection(self, fake_store, make_reminder):
        store = fake_store(due=[make_reminder(f"r{i}", recurrence="daily") for i in range(5)])

        report = await ReminderDispatcher(store, registry_of(), batch_limit=2).run(NOW)

        assert report.processed == 2

    @pytest.mark.asyncio
    async def test_failing_channel_does_not_block_the_other(
        self, fake_store, make_reminder, make_subscription
    ):
        sub = make_subscription()
        store = fake_store(
            due=[make_reminder(recurrence="daily")],
            emails={"user-1": "me@example.com"},
            subscriptions={"user-1": [sub]}
        )
        email = RecordingChannel("email", requires={"email"}, raise_for={"me@example.com"})
        push = RecordingChannel("push", requires={"subscriptions"})

        report = await ReminderDispatcher(store, registry_of(email, push)).run(NOW)

        assert [target for target, _ in push.sent] == [sub.endpoint]
        assert report.failed == 1
        assert store.dispatched[0][1] == datetime(2024, 1, 2, 9, 5, tzinfo=timezone.utc)
        entry = store.deliveries[0]
        assert entry.status == "error"
        outcomes = {r["channel"]: r["ok"] for r in entry.meta["results"]}
        assert outcomes == {"email": False, "push": True}

    @pytest.mark.asyncio
    async def test_profile_lookup_failure_only_skips_email(
        self, fake_store, make_reminder, make_subscription
    ):
        sub = make_subscription()
        store = fake_store(due=[make_reminder(recurrence="daily")], subscriptions={"user-1": [sub]})
        store.email_error = RuntimeError("profiles unavailable")
        email = RecordingChannel("email", requires={"email"})
        push = RecordingChannel("push", requires={"subscriptions"})

        await ReminderDispatcher(store, registry_of(email, push)).run(NOW)

        assert email.sent == []
        assert [target for target, _ in push.sent] == [sub.endpoint]
        entry = store.deliveries[0]
        assert entry.status == "error"
        assert "profile lookup failed" in entry.error
        assert len(store.dispatched) == 1

    @pytest.mark.asyncio
    async def test_end_of_calendar_reminder_is_retired(self, fake_store, make_reminder):
        last = datetime(9999, 12, 31, 12, tzinfo=timezone.utc)
        store = fake_store(due=[make_reminder(recurrence="daily", next_run_at=last)])

        await ReminderDispatcher(store, registry_of(RecordingChannel("inbox"))).run(NOW)

        assert store.dispatched == [("r1", None, NOW)]
        assert store.deliveries[0].status == "ok"
