"""Sleep snapshot persistence."""

from domains.snapshots import SnapshotStore
from .config import SNAPSHOT_TABLE, SNAPSHOT_SECTIONS


class SleepSnapshotStore(SnapshotStore):
    table = SNAPSHOT_TABLE
    sections = SNAPSHOT_SECTIONS

    def seed(self) -> dict:
        return {"trends": [], "last_night": {}, "environment": {}, "notes": []}
