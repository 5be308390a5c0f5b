"""Reminders: recurrence, persistence, delivery and polling.

Supabase stores the reminders; the dispatcher (server, every 5 minutes) and
the ticker (client, every 30 seconds) fire them independently.
"""

from .recurrence import (
    parse_recurrence,
    next_occurrence,
    initial_run_at,
    to_utc_iso,
    parse_timestamp,
    Recurrence,
    RecurrenceKind,
)
from .models import Reminder, PushSubscription, DeliveryLog, REMINDER_TYPES, RECURRENCES
from .store import ReminderStore
from .channels import (
    NotificationChannel,
    NotificationPayload,
    ChannelResult,
    ChannelRegistry,
    Recipient,
    ResendEmailChannel,
    WebPushChannel,
    DryRunChannel,
    build_channel_registry,
)
from .dispatcher import ReminderDispatcher, DispatchReport
from .ticker import ReminderTicker, NativeNotifier, Toast, is_due

__all__ = [
    "parse_recurrence",
    "next_occurrence",
    "initial_run_at",
    "to_utc_iso",
    "parse_timestamp",
    "Recurrence",
    "RecurrenceKind",
    "Reminder",
    "PushSubscription",
    "DeliveryLog",
    "REMINDER_TYPES",
    "RECURRENCES",
    "ReminderStore",
    "NotificationChannel",
    "NotificationPayload",
    "ChannelResult",
    "ChannelRegistry",
    "Recipient",
    "ResendEmailChannel",
    "WebPushChannel",
    "DryRunChannel",
    "build_channel_registry",
    "ReminderDispatcher",
    "DispatchReport",
    "ReminderTicker",
    "NativeNotifier",
    "Toast",
    "is_due",
]
