"""Base coach domain."""

import json
from abc import ABC, abstractmethod
from typing import Any

from config import LLM_TIMEOUT_SECONDS


class Domain(ABC):
    """Base class for all coach personas.

    A domain is a fixed system prompt plus the knobs used when forwarding a
    user message and context snapshot to the chat-completion API.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Route identifier, e.g. "sleep-coach"."""
        pass

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt for this persona."""
        pass

    @property
    def context_label(self) -> str:
        """How the context blob is introduced in the user prompt."""
        return "Context"

    @property
    def temperature(self) -> float:
        return 0.35

    @property
    def timeout_seconds(self) -> float:
        """Wall-clock bound on the upstream call."""
        return LLM_TIMEOUT_SECONDS

    @property
    def function_name(self) -> str:
        return f"ai-{self.name}"

    def build_user_prompt(self, message: str | None, context: Any) -> str:
        """Combine the user's message and context snapshot."""
        snapshot = json.dumps(context or {}, separators=(",", ":"), default=str)
        return (
            f"User message:\n{message or ''}\n\n"
            f"{self.context_label} (JSON, optional):\n{snapshot}"
        )
