"""Recovery snapshot and daily recovery log persistence.

Logging an entry also nudges the snapshot: a sober day bumps the day count
and a craving feeds the rolling seven-day average. Those follow-up writes
are best effort; the log row is what matters.
"""

import math
from datetime import datetime, timezone
from typing import Any

from domains.snapshots import SnapshotStore
from logger import get_logger
from utils import sanitize_for_log
from .config import (
    SNAPSHOT_TABLE,
    SNAPSHOT_SECTIONS,
    LOGS_TABLE,
    LOG_TYPES,
    LOG_FIELDS,
    DEFAULT_LOG_LIMIT,
    DEFAULT_SUBSTANCE,
    DEFAULT_READINESS,
    INSIGHT_LOG_LIMIT,
    INSIGHT_SUGGESTIONS,
)

logger = get_logger("recovery")


def rolling_craving_average(current: float | None, level: float) -> float:
    """Fold one craving level into a seven-day average, one decimal place."""
    current = float(current or 0)
    return round(((current * 6 + float(level)) / 7) * 10) / 10


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class RecoverySnapshotStore(SnapshotStore):
    table = SNAPSHOT_TABLE
    sections = SNAPSHOT_SECTIONS

    def seed(self) -> dict[str, Any]:
        return {
            "substance": DEFAULT_SUBSTANCE,
            "pattern": {
                "stage": "early-recovery",
                "daysSober": 0,
                "past30UseDays": 0,
                "severity": "moderate",
                "weeklyAmount": 0,
            },
            "health": {"cooccurring": [], "meds": [], "sleepQuality": 70},
            "risks": {"topTriggers": [], "highRiskTimes": [], "highRiskPlaces": []},
            "supports": {
                "contacts": [],
                "therapy": {"active": False},
                "groups": {"type": "SMART Recovery", "active": False},
            },
            "cravings": {"last7dAvg": 0, "peakTimes": []},
        }

    async def save_entry(self, entry: dict) -> dict:
        """Insert a recovery log row and update the snapshot counters.

        Raises:
            ValueError: if the entry type is not recognised
        """
        entry_type = entry.get("type")
        if entry_type not in LOG_TYPES:
            raise ValueError(f"Unknown recovery log type: {entry_type!r}")

        row = {"user_id": self.user_id}
        for name in LOG_FIELDS:
            if entry.get(name) is not None:
                row[name] = entry[name]
        row.setdefault("date", datetime.now(timezone.utc).isoformat())

        saved = await self.client.insert(LOGS_TABLE, row)
        saved_row = saved[0] if saved else row

        try:
            await self._apply_side_effects(entry)
        except Exception as e:
            logger.warning(f"Recovery snapshot update failed: {sanitize_for_log(e)}")

        return saved_row

    async def _apply_side_effects(self, entry: dict) -> None:
        entry_type = entry.get("type")
        if entry_type == "sober-day":
            snapshot = await self.get_snapshot()
            pattern = snapshot.get("pattern") or {}
            days = int(pattern.get("daysSober") or 0) + 1
            await self.update_snapshot({"pattern": {"daysSober": days}})
        elif entry_type == "craving" and isinstance(entry.get("craving_level"), (int, float)):
            snapshot = await self.get_snapshot()
            cravings = snapshot.get("cravings") or {}
            average = rolling_craving_average(cravings.get("last7dAvg"), entry["craving_level"])
            await self.update_snapshot({"cravings": {"last7dAvg": average}})

    async def list_logs(self, limit: int = DEFAULT_LOG_LIMIT) -> list[dict]:
        """Most recent log rows first."""
        return await self.client.select(
            LOGS_TABLE,
            {"user_id": f"eq.{self.user_id}"},
            order="date.desc",
            limit=limit,
        )

    async def generate_insights(self) -> dict:
        """Progress score, readiness stage and standing suggestions.

        The craving average comes from recent craving logs, falling back to
        the snapshot's rolling average when there are none. The score is
        100 - 10 x average craving + half the sober days, floored at 0.
        """
        snapshot = await self.get_snapshot()
        logs = await self.list_logs(limit=INSIGHT_LOG_LIMIT)

        levels = [
            row["craving_level"] for row in logs
            if row.get("type") == "craving"
            and isinstance(row.get("craving_level"), (int, float))
            and not isinstance(row.get("craving_level"), bool)
        ]
        pattern = snapshot.get("pattern") or {}
        if levels:
            average = _round_half_up(sum(levels) / len(levels) * 10) / 10
        else:
            average = float((snapshot.get("cravings") or {}).get("last7dAvg") or 0)
        days_sober = float(pattern.get("daysSober") or 0)

        score = max(0.0, 100 - average * 10 + days_sober / 2)
        return {
            "score": _round_half_up(score),
            "readiness": pattern.get("stage") or DEFAULT_READINESS,
            "suggestions": [dict(item) for item in INSIGHT_SUGGESTIONS],
        }
