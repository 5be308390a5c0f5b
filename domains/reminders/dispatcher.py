"""Server-side reminder dispatcher.

Each run picks up enabled reminders whose next_run_at has passed, delivers
them best-effort over every configured channel, then reschedules them and
appends one delivery-log row per reminder. Nothing is retried within a run;
a dropped notification is only recovered by the next occurrence.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from config import DISPATCH_BATCH_LIMIT
from logger import get_logger
from utils import sanitize_for_log
from .channels import ChannelRegistry, ChannelResult, NotificationPayload, Recipient
from .models import DeliveryLog, Reminder
from .recurrence import next_occurrence, to_utc_iso
from .store import ReminderStore

logger = get_logger("reminders.dispatch")


@dataclass
class DispatchReport:
    """Outcome of one dispatcher run (maps onto a plain-text HTTP response)."""
    status_code: int
    body: str
    processed: int = 0
    failed: int = 0


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


class ReminderDispatcher:
    """Delivers due reminders and rolls them forward."""

    def __init__(
        self,
        store: ReminderStore,
        channels: ChannelRegistry,
        batch_limit: int = DISPATCH_BATCH_LIMIT
    ):
        self.store = store
        self.channels = channels
        self.batch_limit = batch_limit

    async def run(self, now: datetime | None = None) -> DispatchReport:
        """Process one batch of due reminders."""
        now = now or datetime.now(timezone.utc)

        try:
            due = await self.store.list_due(now, self.batch_limit)
        except Exception as e:
            logger.error(f"Failed to select due reminders: {sanitize_for_log(e)}")
            return DispatchReport(500, "DB error")

        if not due:
            return DispatchReport(200, "No due reminders.")

        # Endpoints reported gone during this run are never retried
        gone: set[str] = set()
        processed = 0
        failed = 0

        try:
            for reminder in due:
                ok = await self._process(reminder, now, gone)
                processed += 1
                if not ok:
                    failed += 1
        except Exception as e:
            logger.error(f"Reminder dispatch aborted after {processed} reminders: {sanitize_for_log(e)}")
            return DispatchReport(500, "Internal error", processed, failed)

        logger.info(f"Dispatched {processed} reminder(s), {failed} with errors")
        return DispatchReport(200, "OK", processed, failed)

    async def _process(self, reminder: Reminder, now: datetime, gone: set[str]) -> bool:
        """Deliver, reschedule and log one reminder. Returns True when clean."""
        results: list[ChannelResult] = []
        error: str | None = None

        try:
            results = await self._deliver(reminder, gone)
        except Exception as e:
            error = _describe(e)
            logger.error(f"Delivery failed for reminder {reminder.id}: {sanitize_for_log(error)}")

        # Rescheduling happens whatever the delivery outcome
        next_run_at = None
        try:
            next_run_at = next_occurrence(reminder.recurrence, reminder.next_run_at or now)
            await self.store.record_dispatch(reminder.id, next_run_at, sent_at=now)
        except Exception as e:
            logger.error(f"Failed to reschedule reminder {reminder.id}: {sanitize_for_log(e)}")
            error = error or f"reschedule failed: {_describe(e)}"

        failures = [r for r in results if not r.ok]
        if error is None and failures:
            first = failures[0]
            error = first.error or f"{first.channel} delivery failed"

        entry = DeliveryLog(
            reminder_id=reminder.id,
            status="error" if error else "ok",
            meta={
                "next_run_at": to_utc_iso(next_run_at),
                "results": [r.to_meta() for r in results],
            },
            error=sanitize_for_log(error) if error else None,
        )
        try:
            await self.store.log_delivery(entry)
        except Exception as e:
            logger.error(f"Failed to write delivery log for {reminder.id}: {sanitize_for_log(e)}")

        return error is None

    async def _resolve_recipient(self, reminder: Reminder) -> tuple[Recipient, list[ChannelResult]]:
        """Look up the email and push subscriptions the channels need."""
        recipient = Recipient(user_id=reminder.user_id)
        lookup_failures: list[ChannelResult] = []
        if not reminder.user_id:
            return recipient, lookup_failures

        if self.channels.requires("email"):
            try:
                recipient.email = await self.store.get_profile_email(reminder.user_id)
            except Exception as e:
                logger.warning(f"Profile lookup failed for reminder {reminder.id}: {sanitize_for_log(e)}")
                lookup_failures.append(ChannelResult("email", reminder.user_id, ok=False,
                                                     error=f"profile lookup failed: {_describe(e)}"))

        if self.channels.requires("subscriptions"):
            try:
                recipient.subscriptions = await self.store.list_push_subscriptions(reminder.user_id)
            except Exception as e:
                logger.warning(f"Push subscription lookup failed for reminder {reminder.id}: {sanitize_for_log(e)}")
                lookup_failures.append(ChannelResult("push", reminder.user_id, ok=False,
                                                     error=f"subscription lookup failed: {_describe(e)}"))

        return recipient, lookup_failures

    async def _deliver(self, reminder: Reminder, gone: set[str]) -> list[ChannelResult]:
        """Send over every channel; one channel failing never stops another."""
        recipient, results = await self._resolve_recipient(reminder)
        payload = NotificationPayload.for_reminder(reminder)

        for channel in self.channels.all_channels():
            for target in channel.targets(recipient):
                endpoint = getattr(target, "endpoint", None)
                if endpoint and endpoint in gone:
                    continue

                try:
                    result = await channel.send(target, payload)
                except Exception as e:
                    result = ChannelResult(channel.name, str(endpoint or target), ok=False, error=_describe(e))
                results.append(result)

                if result.gone and endpoint:
                    await self._drop_subscription(endpoint, gone)
                elif not result.ok:
                    logger.warning(
                        f"{channel.name} delivery failed for reminder {reminder.id}: "
                        f"{result.status_code or ''} {sanitize_for_log(result.error)}"
                    )

        return results

    async def _drop_subscription(self, endpoint: str, gone: set[str]) -> None:
        """Forget a push subscription the push service reports as gone."""
        gone.add(endpoint)
        try:
            await self.store.remove_push_subscription(endpoint)
        except Exception as e:
            logger.error(f"Failed to remove gone push subscription: {sanitize_for_log(e)}")
