"""Standalone scheduled jobs (not attached to a domain)."""

from .reminder_dispatch import register_reminder_dispatch, reminder_dispatch

__all__ = [
    "register_reminder_dispatch",
    "reminder_dispatch"
]
