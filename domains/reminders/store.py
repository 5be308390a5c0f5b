"""Supabase persistence for reminders, push subscriptions and deliveries."""

from datetime import datetime, timezone
from typing import Any

from logger import get_logger
from supabase_client import SupabaseClient
from utils import sanitize_for_log
from .models import (
    Reminder,
    PushSubscription,
    DeliveryLog,
    REMINDER_TABLE,
    PUSH_TABLE,
    DELIVERY_TABLE,
    PROFILE_TABLE,
)
from .recurrence import initial_run_at, parse_timestamp, to_utc_iso

logger = get_logger("reminders")

# Columns a user may set directly
EDITABLE_FIELDS = {
    "type", "title", "message", "time", "recurrence",
    "start_date", "enabled", "next_run_at", "user_id",
}

DUE_COLUMNS = "id,user_id,title,message,type,next_run_at,recurrence,enabled"


def _by_id(reminder_id: str) -> dict[str, str]:
    return {"id": f"eq.{reminder_id}"}


class ReminderStore:
    """CRUD façade over the reminder tables."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    async def list_reminders(self) -> list[Reminder]:
        """All reminders visible to the client, soonest first.

        Never raises: a failed fetch is logged and returns an empty list so
        pollers keep running.
        """
        try:
            rows = await self.client.select(REMINDER_TABLE, order="next_run_at.asc")
            return [Reminder.from_row(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list reminders: {sanitize_for_log(e)}")
            return []

    async def get_reminder(self, reminder_id: str) -> Reminder | None:
        row = await self.client.select_one(REMINDER_TABLE, _by_id(reminder_id))
        return Reminder.from_row(row) if row else None

    async def create_reminder(self, payload: dict, now: datetime | None = None) -> Reminder:
        """Create a reminder, computing next_run_at unless one is supplied."""
        row = {
            "type": payload.get("type") or "custom",
            "title": payload.get("title") or "Reminder",
            "message": payload.get("message") or "",
            "time": payload.get("time") or "",
            "recurrence": payload.get("recurrence") or "once",
            "start_date": payload.get("start_date") or None,
            "enabled": payload.get("enabled") is not False,
        }
        if payload.get("user_id"):
            row["user_id"] = payload["user_id"]

        next_run_at = parse_timestamp(payload.get("next_run_at"))
        if next_run_at is None:
            next_run_at = initial_run_at(row["start_date"], row["time"], row["recurrence"], now)
        row["next_run_at"] = to_utc_iso(next_run_at)

        rows = await self.client.insert(REMINDER_TABLE, row)
        logger.info(f"Created reminder '{row['title']}' ({row['recurrence']}) next at {row['next_run_at']}")
        return Reminder.from_row(rows[0] if rows else row)

    async def update_reminder(
        self,
        reminder_id: str,
        patch: dict,
        now: datetime | None = None
    ) -> Reminder | None:
        """Apply a partial update.

        When patch["recompute"] is truthy, next_run_at is recomputed from the
        merged start_date / time / recurrence.
        """
        values: dict[str, Any] = {k: v for k, v in patch.items() if k in EDITABLE_FIELDS}

        if patch.get("recompute"):
            current = await self.get_reminder(reminder_id)
            merged = current.to_row() if current else {}
            merged.update(values)
            values["next_run_at"] = to_utc_iso(initial_run_at(
                merged.get("start_date"),
                merged.get("time"),
                merged.get("recurrence"),
                now
            ))
        elif "next_run_at" in values:
            values["next_run_at"] = to_utc_iso(parse_timestamp(values["next_run_at"]))

        if not values:
            return await self.get_reminder(reminder_id)

        rows = await self.client.update(REMINDER_TABLE, values, _by_id(reminder_id))
        return Reminder.from_row(rows[0]) if rows else None

    async def upsert_reminder(self, reminder: dict | Reminder) -> Reminder | None:
        """Create or update depending on whether an id is present."""
        data = reminder.to_row() if isinstance(reminder, Reminder) else dict(reminder)
        reminder_id = data.pop("id", None)
        if reminder_id:
            return await self.update_reminder(reminder_id, data)
        return await self.create_reminder(data)

    async def toggle_reminder(self, reminder_id: str, enabled: bool) -> Reminder | None:
        rows = await self.client.update(REMINDER_TABLE, {"enabled": enabled}, _by_id(reminder_id))
        logger.info(f"Reminder {reminder_id} {'enabled' if enabled else 'disabled'}")
        return Reminder.from_row(rows[0]) if rows else None

    async def delete_reminder(self, reminder_id: str) -> bool:
        await self.client.delete(REMINDER_TABLE, _by_id(reminder_id))
        logger.info(f"Deleted reminder {reminder_id}")
        return True

    # ------------------------------------------------------------------
    # Dispatcher bookkeeping
    # ------------------------------------------------------------------

    async def list_due(self, now: datetime, limit: int) -> list[Reminder]:
        """Enabled reminders with next_run_at <= now, soonest first."""
        rows = await self.client.select(
            REMINDER_TABLE,
            filters={
                "next_run_at": f"lte.{to_utc_iso(now)}",
                "enabled": "eq.true",
            },
            columns=DUE_COLUMNS,
            order="next_run_at.asc",
            limit=limit
        )
        return [Reminder.from_row(row) for row in rows]

    async def record_dispatch(
        self,
        reminder_id: str,
        next_run_at: datetime | None,
        sent_at: datetime | None = None
    ) -> None:
        """Persist the next occurrence; no next occurrence disables the reminder."""
        sent_at = sent_at or datetime.now(timezone.utc)
        await self.client.update(
            REMINDER_TABLE,
            {
                "last_sent_at": to_utc_iso(sent_at),
                "next_run_at": to_utc_iso(next_run_at),
                "enabled": next_run_at is not None,
            },
            _by_id(reminder_id)
        )

    async def log_delivery(self, entry: DeliveryLog) -> None:
        await self.client.insert(DELIVERY_TABLE, [entry.to_row()])

    async def get_profile_email(self, user_id: str) -> str | None:
        row = await self.client.select_one(PROFILE_TABLE, {"id": f"eq.{user_id}"}, columns="email")
        return row.get("email") if row else None

    # ------------------------------------------------------------------
    # Push subscriptions
    # ------------------------------------------------------------------

    async def save_push_subscription(
        self,
        endpoint: str,
        keys: dict | None,
        user_agent: str | None = None,
        user_id: str | None = None
    ) -> PushSubscription:
        """Store a browser subscription (one row per endpoint)."""
        if not endpoint:
            raise ValueError("Push subscription requires an endpoint")
        keys = keys or {}
        subscription = PushSubscription(
            endpoint=endpoint,
            p256dh=keys.get("p256dh", ""),
            auth=keys.get("auth", ""),
            user_id=user_id,
            user_agent=user_agent,
        )
        row = subscription.to_row()
        if user_id is None:
            # Let the database default (auth.uid()) fill it in
            row.pop("user_id")
        rows = await self.client.upsert(PUSH_TABLE, row, on_conflict="endpoint")
        logger.info("Saved push subscription")
        return PushSubscription.from_row(rows[0]) if rows else subscription

    async def list_push_subscriptions(self, user_id: str) -> list[PushSubscription]:
        rows = await self.client.select(
            PUSH_TABLE,
            filters={"user_id": f"eq.{user_id}"},
            columns="endpoint,p256dh,auth,user_id"
        )
        return [PushSubscription.from_row(row) for row in rows]

    async def remove_push_subscription(self, endpoint: str) -> bool:
        await self.client.delete(PUSH_TABLE, {"endpoint": f"eq.{endpoint}"})
        logger.info(f"Removed push subscription {sanitize_for_log(endpoint)}")
        return True
