"""Recovery domain - addiction coach persona, snapshot, daily logs and records."""

from .domain import RecoveryDomain
from .records import RecoveryRecordStore
from .store import RecoverySnapshotStore, rolling_craving_average

__all__ = ["RecoveryDomain", "RecoveryRecordStore", "RecoverySnapshotStore", "rolling_craving_average"]
