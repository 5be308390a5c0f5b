"""Habits coach domain implementation."""

from domains.base import Domain
from .config import NAME, SYSTEM_PROMPT, CONTEXT_LABEL, TEMPERATURE


class HabitsDomain(Domain):
    """Habit-building persona."""

    @property
    def name(self) -> str:
        return NAME

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    @property
    def context_label(self) -> str:
        return CONTEXT_LABEL

    @property
    def temperature(self) -> float:
        return TEMPERATURE
