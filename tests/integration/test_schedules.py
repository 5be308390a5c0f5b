"""Integration tests for scheduled job registration and execution."""

import pytest
from unittest.mock import AsyncMock, Mock

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from domains.reminders import DispatchReport


class TestReminderDispatchRegistration:
    """Dispatcher job wiring."""

    def test_registers_every_five_minutes(self):
        from jobs import register_reminder_dispatch

        scheduler = AsyncIOScheduler()
        register_reminder_dispatch(scheduler, Mock())

        job = scheduler.get_job("reminder_dispatch")
        assert job is not None
        assert "minute='*/5'" in str(job.trigger)

    def test_unconfigured_dispatcher_still_registers(self):
        from jobs import register_reminder_dispatch

        scheduler = AsyncIOScheduler()
        register_reminder_dispatch(scheduler, None)

        assert scheduler.get_job("reminder_dispatch").args == (None,)


class TestReminderDispatchExecution:
    """What the job does when it fires."""

    @pytest.mark.asyncio
    async def test_skips_without_backend(self):
        from jobs import reminder_dispatch

        report = await reminder_dispatch(None)

        assert report.status_code == 200
        assert report.body == "Supabase not configured. Skipping."

    @pytest.mark.asyncio
    async def test_runs_dispatcher(self):
        from jobs import reminder_dispatch

        dispatcher = Mock()
        dispatcher.run = AsyncMock(return_value=DispatchReport(200, "OK", processed=3))

        report = await reminder_dispatch(dispatcher)

        assert report.processed == 3
        dispatcher.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_run_is_returned(self):
        from jobs import reminder_dispatch

        dispatcher = Mock()
        dispatcher.run = AsyncMock(return_value=DispatchReport(500, "DB error"))

        report = await reminder_dispatch(dispatcher)

        assert (report.status_code, report.body) == (500, "DB error")
