"""Timora worker - owns the scheduler that runs the reminder jobs.

Runs the server dispatcher every few minutes and, when enabled, the
polling ticker that surfaces due reminders in the log.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import RUN_REMINDER_TICKER, DISPATCH_INTERVAL_MINUTES
from domains.reminders import (
    ReminderDispatcher,
    ReminderStore,
    ReminderTicker,
    Toast,
    build_channel_registry,
)
from jobs import register_reminder_dispatch
from logger import logger
from supabase_client import create_service_client


def log_toast(toast: Toast) -> None:
    """Toast sink for headless runs."""
    logger.info(f"[reminder] {toast.title}: {toast.description}")


async def run() -> None:
    scheduler = AsyncIOScheduler()
    client = create_service_client()
    ticker = None

    if client is not None:
        await client.connect()
        store = ReminderStore(client)
        dispatcher = ReminderDispatcher(store, build_channel_registry())
    else:
        store = None
        dispatcher = None

    register_reminder_dispatch(scheduler, dispatcher)

    if RUN_REMINDER_TICKER and store is not None:
        ticker = ReminderTicker(store, log_toast)
        ticker.start(scheduler)

    scheduler.start()
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs "
                f"(dispatch every {DISPATCH_INTERVAL_MINUTES} mins)")

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C still raises
            pass

    try:
        await stop.wait()
    finally:
        if ticker is not None:
            ticker.stop()
        scheduler.shutdown(wait=False)
        if client is not None:
            await client.dispose()
        logger.info("Timora worker stopped")


def main():
    """Entry point."""
    logger.info("Starting Timora worker...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
