"""Addiction recovery coach domain implementation."""

from domains.base import Domain
from .config import NAME, SYSTEM_PROMPT, CONTEXT_LABEL, TEMPERATURE, TIMEOUT_SECONDS


class RecoveryDomain(Domain):
    """Recovery coaching persona.

    Exposed as ``addiction-coach``; the function also answers health probes
    and CORS preflight, which the API layer handles for every coach.
    """

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

    @property
    def timeout_seconds(self) -> float:
        return TIMEOUT_SECONDS
