"""Habits domain - coach persona and habits snapshot."""

from .domain import HabitsDomain
from .store import HabitsSnapshotStore

__all__ = ["HabitsDomain", "HabitsSnapshotStore"]
