"""Habits snapshot persistence."""

from domains.snapshots import SnapshotStore
from .config import SNAPSHOT_TABLE, SNAPSHOT_SECTIONS


class HabitsSnapshotStore(SnapshotStore):
    table = SNAPSHOT_TABLE
    sections = SNAPSHOT_SECTIONS

    def seed(self) -> dict:
        return {"habits": [], "streaks": {}, "schedule": {}, "correlations": []}
