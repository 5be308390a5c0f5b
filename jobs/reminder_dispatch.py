"""Reminder dispatch scheduled job.

Runs every few minutes on the server and sends email + push for every
enabled reminder whose next_run_at has passed.
"""

from config import DISPATCH_INTERVAL_MINUTES
from logger import logger
from domains.reminders import DispatchReport, ReminderDispatcher

NOT_CONFIGURED = "Supabase not configured. Skipping."


async def reminder_dispatch(dispatcher: ReminderDispatcher | None) -> DispatchReport:
    """Run one dispatcher pass. Without a backend this is a logged no-op."""
    if dispatcher is None:
        logger.warning(NOT_CONFIGURED)
        return DispatchReport(200, NOT_CONFIGURED)

    report = await dispatcher.run()
    if report.status_code >= 500:
        logger.error(f"Reminder dispatch failed: {report.body}")
    else:
        logger.info(f"Reminder dispatch: {report.body} ({report.processed} processed)")
    return report


def register_reminder_dispatch(scheduler, dispatcher: ReminderDispatcher | None):
    """Register the reminder dispatch job with the scheduler."""
    scheduler.add_job(
        reminder_dispatch,
        'cron',
        args=[dispatcher],
        minute=f"*/{DISPATCH_INTERVAL_MINUTES}",
        id="reminder_dispatch",
        max_instances=1,
        coalesce=True
    )
    logger.info(f"Registered reminder dispatch job (every {DISPATCH_INTERVAL_MINUTES} mins)")
