"""Sleep domain - coach persona and sleep snapshot."""

from .domain import SleepDomain
from .store import SleepSnapshotStore

__all__ = ["SleepDomain", "SleepSnapshotStore"]
