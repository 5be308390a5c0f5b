"""Chat-completion client for the coach personas.

Failures are reported as structured error bodies rather than exceptions so
the API layer can pass the status and JSON straight through.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

from config import OPENAI_API_KEY, OPENAI_MODEL, OPENAI_BASE_URL, LLM_TIMEOUT_SECONDS
from logger import logger
from utils import sanitize_for_log

NO_REPLY = "No reply."


@dataclass
class CompletionResult:
    """HTTP status and JSON body to return to the caller."""
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == 200


class OpenAIClient:
    """Minimal Chat Completions client over httpx."""

    def __init__(
        self,
        api_key: str | None = OPENAI_API_KEY,
        model: str = OPENAI_MODEL,
        base_url: str = OPENAI_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def chat(
        self,
        system: str,
        user: str,
        temperature: float = 0.35,
        timeout: float = LLM_TIMEOUT_SECONDS,
        model: str | None = None
    ) -> CompletionResult:
        """
        Send one system + user exchange and return the reply.

        Args:
            system: System prompt
            user: User prompt (message plus serialized context)
            temperature: Sampling temperature
            timeout: Wall-clock bound for the whole call, in seconds
            model: Override the configured model

        Returns:
            CompletionResult with {"reply": ...} on success, or an error body:
            missing_api_key (500), openai_error (502), timeout (504),
            server_error (500)
        """
        if not self.api_key:
            return CompletionResult(500, {
                "error": "missing_api_key",
                "detail": "Set OPENAI_API_KEY in the server environment."
            })

        try:
            return await asyncio.wait_for(
                self._post(system, user, temperature, timeout, model or self.model),
                timeout=timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"OpenAI call timed out after {timeout}s")
            return CompletionResult(504, {"error": "timeout", "detail": str(e) or "timeout"})
        except Exception as e:
            logger.error(f"OpenAI call failed: {sanitize_for_log(e)}")
            return CompletionResult(500, {"error": "server_error", "detail": str(e)})

    async def _post(
        self,
        system: str,
        user: str,
        temperature: float,
        timeout: float,
        model: str
    ) -> CompletionResult:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user}
            ]
        }

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload
            )

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(f"OpenAI API error - Status: {response.status_code}")
            return CompletionResult(502, {
                "error": "openai_error",
                "status": response.status_code,
                "detail": response.text
            })

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return CompletionResult(200, {"reply": content or NO_REPLY})
