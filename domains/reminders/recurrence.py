"""Compute reminder fire times from recurrence descriptors.

Descriptors (case-insensitive):
- "" / "once"              one-shot, no further occurrence
- "daily"                  +1 day, same time
- "weekly:MO,WE,FR"        next listed weekday (1..7 days ahead, never 0)
- "weekdays"               weekly on MO..FR
- "monthly"                same day next month (clamped to month end)
- "cron:<expr>"            +5 minutes (placeholder, not a cron evaluator)
- anything else            +1 day

All times are UTC. Nothing in this module raises on bad input.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any

from dateutil.parser import parse as parse_datetime
from dateutil.relativedelta import relativedelta

# Two-letter codes -> Python weekday numbers (Monday == 0)
DAY_CODES = {"MO": 0, "TU": 1, "WE": 2, "TH": 3, "FR": 4, "SA": 5, "SU": 6}
WORKWEEK = (0, 1, 2, 3, 4)

CRON_PLACEHOLDER_STEP = timedelta(minutes=5)
FALLBACK_STEP = timedelta(days=1)


class RecurrenceKind(str, Enum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CRON = "cron"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Recurrence:
    """Parsed recurrence descriptor."""
    kind: RecurrenceKind
    weekdays: tuple[int, ...] = ()
    expression: str = ""

    @property
    def terminal(self) -> bool:
        return self.kind is RecurrenceKind.ONCE


def parse_recurrence(descriptor: Any) -> Recurrence:
    """Parse a descriptor string; unrecognised input maps to UNKNOWN."""
    raw = "" if descriptor is None else str(descriptor).strip()
    text = raw.upper()

    if not text or text == "ONCE":
        return Recurrence(RecurrenceKind.ONCE)
    if text.startswith("DAILY"):
        return Recurrence(RecurrenceKind.DAILY)
    if text.startswith("WEEKDAYS"):
        return Recurrence(RecurrenceKind.WEEKLY, WORKWEEK)
    if text.startswith("WEEKLY"):
        _, _, day_list = text.partition(":")
        weekdays = sorted({
            DAY_CODES[code.strip()]
            for code in day_list.split(",")
            if code.strip() in DAY_CODES
        })
        return Recurrence(RecurrenceKind.WEEKLY, tuple(weekdays))
    if text.startswith("MONTHLY"):
        return Recurrence(RecurrenceKind.MONTHLY)
    if text.startswith("CRON:"):
        return Recurrence(RecurrenceKind.CRON, expression=raw[5:].strip())
    return Recurrence(RecurrenceKind.UNKNOWN, expression=raw)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp (or datetime) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(parse_datetime(str(value)))
    except (ValueError, OverflowError):
        return None


def to_utc_iso(value: datetime | None) -> str | None:
    """Format as "YYYY-MM-DDTHH:MM:SSZ"."""
    if value is None:
        return None
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_time_of_day(value: Any, default: tuple[int, int] = (0, 0)) -> tuple[int, int]:
    """Parse "HH:MM" into (hour, minute); invalid input gives the default."""
    if not value or not isinstance(value, str):
        return default
    parts = value.strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return default
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return default
    return hour, minute


def parse_start_date(value: Any) -> date | None:
    """Parse a start date ("YYYY-MM-DD", ISO timestamp, date or datetime)."""
    if not value:
        return None
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    try:
        return parse_datetime(str(value)).date()
    except (ValueError, OverflowError):
        return None


def _weekday_delta(weekdays: tuple[int, ...], today: int) -> int:
    """Smallest delta in 1..7 from today to a listed weekday (0 forced to 7)."""
    deltas = [((day - today) % 7) or 7 for day in weekdays]
    return min(deltas, default=7)


def _step(rule: Recurrence, current: datetime) -> datetime:
    """Advance one occurrence for a non-terminal rule."""
    if rule.kind is RecurrenceKind.WEEKLY:
        return current + timedelta(days=_weekday_delta(rule.weekdays, current.weekday()))
    if rule.kind is RecurrenceKind.MONTHLY:
        return current + relativedelta(months=1)
    if rule.kind is RecurrenceKind.CRON:
        return current + CRON_PLACEHOLDER_STEP
    # DAILY and the unknown-descriptor fallback
    return current + FALLBACK_STEP


def _fixed_period(rule: Recurrence) -> timedelta | None:
    """Whole period that can be skipped without changing the pattern."""
    if rule.kind is RecurrenceKind.WEEKLY:
        return timedelta(days=7)
    if rule.kind is RecurrenceKind.CRON:
        return CRON_PLACEHOLDER_STEP
    if rule.kind is RecurrenceKind.MONTHLY:
        return None
    return FALLBACK_STEP


def _roll_forward(rule: Recurrence, candidate: datetime, now: datetime) -> datetime:
    """Re-apply the rule until the candidate is strictly after now."""
    if rule.terminal:
        rule = Recurrence(RecurrenceKind.DAILY)

    period = _fixed_period(rule)
    if candidate <= now and period is not None:
        candidate += ((now - candidate) // period) * period

    while candidate <= now:
        candidate = _step(rule, candidate)
    return candidate


def next_occurrence(
    descriptor: Any,
    reference: datetime | str | None,
    now: datetime | None = None
) -> datetime | None:
    """Next fire time after a reference (the last scheduled time).

    Args:
        descriptor: Recurrence descriptor
        reference: Last scheduled time (defaults to the current time)
        now: When given, the result is re-rolled until strictly after it

    Returns:
        Next UTC fire time, or None when there is no further occurrence
    """
    rule = parse_recurrence(descriptor)
    if rule.terminal:
        return None

    current = parse_timestamp(reference) or datetime.now(timezone.utc)
    try:
        candidate = _step(rule, current)
        if now is not None:
            candidate = _roll_forward(rule, candidate, as_utc(now))
    except (OverflowError, ValueError):
        # Past the end of the calendar: nothing left to schedule
        return None
    return candidate


def initial_run_at(
    start_date: Any,
    time_of_day: Any,
    descriptor: Any,
    now: datetime | None = None
) -> datetime:
    """First fire time for a new or edited reminder.

    The start date (default: today) at the time of day, in UTC. Weekly rules
    snap forward to the first listed weekday. A candidate that is not
    strictly after now is rolled forward with the same rule; one-time
    reminders roll by a day.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    rule = parse_recurrence(descriptor)

    day = parse_start_date(start_date) or now.date()
    hour, minute = parse_time_of_day(time_of_day)
    candidate = datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)

    if rule.kind is RecurrenceKind.WEEKLY and rule.weekdays and candidate.weekday() not in rule.weekdays:
        candidate += timedelta(days=_weekday_delta(rule.weekdays, candidate.weekday()))

    if candidate <= now:
        candidate = _roll_forward(rule, candidate, now)
    return candidate
