"""Wealth snapshot persistence."""

from domains.snapshots import SnapshotStore
from .config import SNAPSHOT_TABLE, SNAPSHOT_SECTIONS


class WealthSnapshotStore(SnapshotStore):
    table = SNAPSHOT_TABLE
    sections = SNAPSHOT_SECTIONS

    def seed(self) -> dict:
        return {
            "net_worth": {"assets": 0, "liabilities": 0},
            "cash_flow": {"monthly_income": 0, "monthly_expenses": 0},
            "risk_profile": {},
            "allocation": [],
            "debts": [],
        }
