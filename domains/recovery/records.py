"""Triggers, relapses and support contacts for the recovery pages.

Each kind is a plain per-user table. Every query is filtered on user_id as
well as relying on RLS.
"""

from datetime import datetime, timezone
from typing import Any

from domains.reminders.recurrence import parse_timestamp
from logger import get_logger
from supabase_client import SupabaseClient
from .config import RECORD_KINDS

logger = get_logger("recovery.records")


def _iso(value: Any) -> str:
    """Normalise a date to an ISO UTC timestamp.

    Raises:
        ValueError: if the value is not a date
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed.isoformat()


def _number(value: Any) -> int | float:
    number = float(value)
    return int(number) if number.is_integer() else number


class RecoveryRecordStore:
    """CRUD over one of the recovery record tables for a single user."""

    def __init__(self, client: SupabaseClient, user_id: str, kind: str):
        if kind not in RECORD_KINDS:
            raise KeyError(kind)
        if not user_id:
            raise ValueError("Recovery records are keyed by user; user_id is required")
        self.client = client
        self.user_id = user_id
        self.kind = kind
        self.table = RECORD_KINDS[kind]["table"]
        self.fields = RECORD_KINDS[kind]["fields"]
        self.required = RECORD_KINDS[kind]["required"]
        self.order = RECORD_KINDS[kind]["order"]

    def _owned(self, record_id: Any = None) -> dict[str, str]:
        filters = {"user_id": f"eq.{self.user_id}"}
        if record_id is not None:
            filters["id"] = f"eq.{record_id}"
        return filters

    def _clean(self, values: dict) -> dict:
        """Known columns only, with dates and intensities normalised."""
        row = {k: v for k, v in values.items() if k in self.fields}
        if row.get("date"):
            row["date"] = _iso(row["date"])
        elif "date" in row:
            del row["date"]
        if row.get("intensity") is not None:
            try:
                row["intensity"] = _number(row["intensity"])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid intensity: {row['intensity']!r}")
        return row

    async def list_records(self) -> list[dict]:
        return await self.client.select(self.table, self._owned(), order=self.order)

    async def create_record(self, values: dict) -> dict:
        """Insert a record for the user.

        Optional text fields left empty are stored as null. Relapses default
        to now and to intensity 0.

        Raises:
            ValueError: if a required field is missing or a value is malformed
        """
        row = self._clean(values)
        if self.required and not row.get(self.required):
            raise ValueError(f"{self.required} is required")

        row = {name: row.get(name) or None for name in self.fields}
        if self.kind == "relapses":
            row["date"] = row["date"] or datetime.now(timezone.utc).isoformat()
            row["intensity"] = row["intensity"] or 0

        row["user_id"] = self.user_id
        saved = await self.client.insert(self.table, row)
        logger.info(f"Added {self.table} row for user {self.user_id}")
        return saved[0] if saved else row

    async def update_record(self, record_id: Any, patch: dict) -> dict | None:
        """Apply the given fields; returns None when no owned row matched."""
        values = self._clean(patch)
        if not values:
            rows = await self.client.select(self.table, self._owned(record_id), limit=1)
            return rows[0] if rows else None

        rows = await self.client.update(self.table, values, self._owned(record_id))
        return rows[0] if rows else None

    async def delete_record(self, record_id: Any) -> dict:
        await self.client.delete(self.table, self._owned(record_id))
        logger.info(f"Deleted {self.table} row {record_id} for user {self.user_id}")
        return {"ok": True}
