"""Per-user wellness snapshots stored as one row per user.

Each snapshot is a handful of JSON sections. Updates merge dict sections
shallowly into the stored row and upsert on user_id, so concurrent first
loads never collide.
"""

from datetime import datetime, timezone
from typing import Any

from logger import get_logger
from supabase_client import SupabaseClient

logger = get_logger("snapshots")


class SnapshotStore:
    """Merge-and-upsert store for a one-row-per-user table."""

    table: str = ""
    sections: tuple[str, ...] = ()

    def __init__(self, client: SupabaseClient, user_id: str):
        if not user_id:
            raise ValueError("Snapshots are keyed by user; user_id is required")
        self.client = client
        self.user_id = user_id

    def seed(self) -> dict[str, Any]:
        """Initial contents for a user without a row yet."""
        return {name: {} for name in self.sections}

    def _key(self) -> dict[str, str]:
        return {"user_id": f"eq.{self.user_id}"}

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def get_snapshot(self) -> dict:
        """Load the snapshot, creating the seeded row on first access."""
        row = await self.client.select_one(self.table, self._key())
        if row:
            return row

        seeded = {"user_id": self.user_id, **self.seed(), "updated_at": self._now()}
        await self.client.upsert(self.table, seeded, on_conflict="user_id")
        logger.info(f"Seeded {self.table} for user {self.user_id}")
        return seeded

    def merge(self, current: dict, patch: dict) -> dict:
        """Shallow-merge dict sections; other values replace when given."""
        merged: dict[str, Any] = {"user_id": self.user_id}
        for name in self.sections:
            old = current.get(name)
            new = patch.get(name)
            if new is None:
                merged[name] = old
            elif isinstance(new, dict) and isinstance(old, dict):
                merged[name] = {**old, **new}
            else:
                merged[name] = new
        merged["updated_at"] = self._now()
        return merged

    async def update_snapshot(self, patch: dict) -> dict:
        """Merge a partial update into the stored snapshot and return it."""
        current = await self.client.select_one(self.table, self._key()) or {}
        merged = self.merge(current, patch or {})
        await self.client.upsert(self.table, merged, on_conflict="user_id")
        return await self.client.select_one(self.table, self._key()) or merged
