"""Client-side reminder ticker.

Polls the reminder list every ~30 seconds and fires an in-app toast (plus a
native notification when permitted) for each reminder due right now. This
runs independently of the server dispatcher; both may notify for the same
reminder.
"""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import TICK_INTERVAL_SECONDS, DUE_WINDOW_SECONDS
from logger import get_logger
from utils import sanitize_for_log
from .models import Reminder
from .recurrence import RecurrenceKind, parse_recurrence, parse_start_date, parse_time_of_day
from .store import ReminderStore

logger = get_logger("reminders.ticker")

DEFAULT_TIME_OF_DAY = (9, 0)


@dataclass
class Toast:
    """Transient in-app notification."""
    title: str
    description: str
    status: str = "info"
    duration_ms: int = 6000
    is_closable: bool = True


ToastCallback = Callable[[Toast], Awaitable[Any] | Any]


class NativeNotifier(ABC):
    """Platform notification backend (service worker or direct)."""

    @abstractmethod
    async def ensure_permission(self) -> bool:
        """Return True if notifications may be shown, asking once if needed."""
        pass

    @abstractmethod
    async def show(self, title: str, body: str) -> None:
        """Display a notification."""
        pass


def _correct_day(reminder: Reminder, now: datetime) -> bool:
    rule = parse_recurrence(reminder.recurrence)
    start = parse_start_date(reminder.start_date)
    today = now.date()

    if rule.kind is RecurrenceKind.ONCE:
        return start is not None and start == today
    if rule.kind is RecurrenceKind.WEEKLY:
        if rule.weekdays:
            return today.weekday() in rule.weekdays
        return (start or today).weekday() == today.weekday()
    return True


def is_due(reminder: Reminder, now: datetime, window_seconds: int = DUE_WINDOW_SECONDS) -> bool:
    """Whether a reminder should fire at this moment.

    The reminder's time of day (default 09:00) is read in now's timezone and
    matched within +/- window_seconds, on a day allowed by the recurrence.
    """
    if not reminder.enabled:
        return False
    if not _correct_day(reminder, now):
        return False

    hour, minute = parse_time_of_day(reminder.time, default=DEFAULT_TIME_OF_DAY)
    scheduled = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return abs((now - scheduled).total_seconds()) <= window_seconds


class ReminderTicker:
    """Polling loop that shows due reminders."""

    JOB_ID = "reminder_ticker"

    def __init__(
        self,
        store: ReminderStore,
        toast: ToastCallback,
        native: NativeNotifier | None = None,
        interval_seconds: int = TICK_INTERVAL_SECONDS,
        window_seconds: int = DUE_WINDOW_SECONDS
    ):
        self.store = store
        self.toast = toast
        self.native = native
        self.interval_seconds = interval_seconds
        self.window_seconds = window_seconds
        self._ticking = False
        # reminder id -> occurrence already shown (date + time of day)
        self._fired: dict[str, str] = {}
        self._scheduler: AsyncIOScheduler | None = None

    async def tick(self, now: datetime | None = None) -> list[Reminder]:
        """Evaluate every reminder once. Overlapping calls are skipped."""
        if self._ticking:
            logger.debug("Reminder tick still running, skipping")
            return []

        self._ticking = True
        try:
            now = now or datetime.now().astimezone()
            fired = []
            for reminder in await self._fetch():
                if not is_due(reminder, now, self.window_seconds):
                    continue

                occurrence = f"{now.date().isoformat()} {reminder.time or ''}"
                key = reminder.id or reminder.title
                if self._fired.get(key) == occurrence:
                    continue
                self._fired[key] = occurrence

                await self._fire(reminder)
                fired.append(reminder)
            return fired
        finally:
            self._ticking = False

    async def _fetch(self) -> list[Reminder]:
        try:
            reminders = await self.store.list_reminders()
        except Exception as e:
            logger.error(f"Reminder poll failed: {sanitize_for_log(e)}")
            return []
        return reminders if isinstance(reminders, list) else []

    async def _fire(self, reminder: Reminder) -> None:
        title = reminder.title or "Reminder"

        try:
            result = self.toast(Toast(title=title, description=reminder.message or "It's time!"))
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Toast failed for reminder {reminder.id}: {sanitize_for_log(e)}")

        if self.native is not None:
            try:
                if await self.native.ensure_permission():
                    await self.native.show(title, reminder.message or "")
            except Exception as e:
                logger.warning(f"Native notification failed for reminder {reminder.id}: {sanitize_for_log(e)}")

        # One-time reminders must not fire again on the next tick
        if parse_recurrence(reminder.recurrence).terminal and reminder.id:
            try:
                await self.store.toggle_reminder(reminder.id, False)
            except Exception as e:
                logger.error(f"Failed to disable one-time reminder {reminder.id}: {sanitize_for_log(e)}")

        logger.info(f"Fired reminder {reminder.id}: {title}")

    def start(self, scheduler: AsyncIOScheduler) -> None:
        """Tick now and then every interval_seconds."""
        scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Reminder ticker",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True
        )
        self._scheduler = scheduler
        logger.info(f"Started reminder ticker (every {self.interval_seconds}s)")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        try:
            self._scheduler.remove_job(self.JOB_ID)
        except JobLookupError:
            pass
        self._scheduler = None
