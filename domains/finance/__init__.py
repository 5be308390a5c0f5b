"""Finance domain - advisor persona and wealth snapshot."""

from .domain import FinanceDomain
from .store import WealthSnapshotStore

__all__ = ["FinanceDomain", "WealthSnapshotStore"]
