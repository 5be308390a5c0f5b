"""Reminder, push subscription and delivery log records."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .recurrence import parse_timestamp, to_utc_iso

REMINDER_TYPES = [
    {"value": "habit", "label": "Habits"},
    {"value": "sleep", "label": "Sleep"},
    {"value": "wealth", "label": "Wealth"},
    {"value": "recovery", "label": "Recovery"},
    {"value": "custom", "label": "Custom"},
]

RECURRENCES = [
    {"value": "once", "label": "One-time"},
    {"value": "daily", "label": "Daily"},
    {"value": "weekly", "label": "Weekly"},
    {"value": "monthly", "label": "Monthly"},
]

REMINDER_TABLE = "reminders"
PUSH_TABLE = "push_subscriptions"
DELIVERY_TABLE = "reminder_deliveries"
PROFILE_TABLE = "profiles"

DELIVERY_CHANNEL = "email_push"


@dataclass
class Reminder:
    """A user-configured scheduled notification."""
    id: str | None
    user_id: str | None = None
    type: str = "custom"
    title: str = "Reminder"
    message: str = ""
    time: str = ""  # "HH:MM"
    recurrence: str = "once"
    start_date: str = ""
    next_run_at: datetime | None = None
    enabled: bool = True
    last_sent_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict) -> "Reminder":
        known = {
            "id", "user_id", "type", "title", "message", "time", "recurrence",
            "start_date", "next_run_at", "enabled", "last_sent_at",
        }
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id"),
            type=row.get("type") or "custom",
            title=row.get("title") or "",
            message=row.get("message") or "",
            time=row.get("time") or "",
            recurrence=row.get("recurrence") or "",
            start_date=row.get("start_date") or "",
            next_run_at=parse_timestamp(row.get("next_run_at")),
            enabled=row.get("enabled") is not False,
            last_sent_at=parse_timestamp(row.get("last_sent_at")),
            extra={k: v for k, v in row.items() if k not in known},
        )

    def to_row(self) -> dict:
        row = {
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "time": self.time,
            "recurrence": self.recurrence,
            "start_date": self.start_date or None,
            "next_run_at": to_utc_iso(self.next_run_at),
            "enabled": self.enabled,
            "last_sent_at": to_utc_iso(self.last_sent_at),
        }
        if self.id is not None:
            row["id"] = self.id
        return row


@dataclass
class PushSubscription:
    """Browser push subscription, unique per endpoint."""
    endpoint: str
    p256dh: str
    auth: str
    user_id: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "PushSubscription":
        keys = row.get("keys") or {}
        return cls(
            endpoint=row["endpoint"],
            p256dh=row.get("p256dh") or keys.get("p256dh", ""),
            auth=row.get("auth") or keys.get("auth", ""),
            user_id=row.get("user_id"),
            user_agent=row.get("user_agent"),
        )

    def to_row(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "p256dh": self.p256dh,
            "auth": self.auth,
            "user_id": self.user_id,
            "user_agent": self.user_agent,
        }

    def subscription_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


@dataclass
class DeliveryLog:
    """One audit row per reminder per dispatch run."""
    reminder_id: str
    status: str  # "ok" | "error"
    channel: str = DELIVERY_CHANNEL
    meta: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_row(self) -> dict:
        row = {
            "reminder_id": self.reminder_id,
            "channel": self.channel,
            "status": self.status,
            "meta": self.meta,
        }
        if self.error is not None:
            row["error"] = self.error
        return row
