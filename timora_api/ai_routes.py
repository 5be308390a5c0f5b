"""Coach proxy routes.

Each coach is a fixed system prompt forwarded to the chat-completion API
together with the caller's message and an optional context snapshot.
"""

import json

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

import config
from logger import logger
from openai_client import OpenAIClient
from registry import registry

router = APIRouter(prefix="/api/ai", tags=["AI coaches"])


def get_llm_client() -> OpenAIClient:
    """Client built from current configuration."""
    return OpenAIClient(
        api_key=config.OPENAI_API_KEY,
        model=config.OPENAI_MODEL,
        base_url=config.OPENAI_BASE_URL
    )


async def _read_json(request: Request) -> dict:
    """Request body as a dict; malformed or missing JSON reads as {}."""
    try:
        body = json.loads(await request.body() or b"{}")
    except (ValueError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


@router.get("/health")
async def ai_health():
    """Liveness for the AI proxy."""
    return {"ok": True, "env": config.APP_ENV}


@router.get("/debug")
async def ai_debug():
    """Whether an API key is configured. Never reveals more than a prefix."""
    key = config.OPENAI_API_KEY or ""
    return {
        "ok": True,
        "model": config.OPENAI_MODEL,
        "keyPresent": bool(key),
        "keyPrefix": key[:8] if key else None
    }


@router.get("/{coach}")
async def coach_health(coach: str, health: str | None = None):
    """Per-coach health probe: GET /api/ai/<coach>?health=1."""
    domain = registry.get_by_name(coach)
    if domain is None:
        return JSONResponse({"error": "unknown_coach"}, status_code=404)
    if health != "1":
        return JSONResponse({"error": "method_not_allowed"}, status_code=405)
    return {"ok": True, "function": domain.function_name}


@router.options("/{coach}")
async def coach_preflight(coach: str):
    """Explicit preflight answer for clients that skip the CORS middleware."""
    return Response(status_code=204)


@router.post("/{coach}")
async def ask_coach(coach: str, request: Request):
    """Forward {message, context} to the coach persona."""
    domain = registry.get_by_name(coach)
    if domain is None:
        return JSONResponse({"error": "unknown_coach"}, status_code=404)

    body = await _read_json(request)
    user_prompt = domain.build_user_prompt(body.get("message"), body.get("context"))

    result = await get_llm_client().chat(
        system=domain.system_prompt,
        user=user_prompt,
        temperature=domain.temperature,
        timeout=domain.timeout_seconds
    )
    if not result.ok:
        logger.warning(f"Coach {coach} returned {result.status}: {result.body.get('error')}")
    return JSONResponse(result.body, status_code=result.status)
