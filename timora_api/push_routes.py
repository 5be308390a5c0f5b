"""Web Push subscription routes."""

import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from domains.reminders import ReminderStore
from logger import logger
from supabase_client import SupabaseError, create_service_client
from utils import sanitize_for_log
from .deps import UserSession, user_session

router = APIRouter(prefix="/push", tags=["Push"])


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscribe(BaseModel):
    """Browser PushSubscription.toJSON() shape."""
    endpoint: str
    keys: PushKeys
    user_agent: Optional[str] = Field(default=None, alias="userAgent")


@router.post("/subscribe")
async def subscribe(payload: PushSubscribe, session: UserSession = Depends(user_session)):
    """Store the caller's subscription, replacing any row for the same endpoint."""
    try:
        subscription = await ReminderStore(session.client).save_push_subscription(
            payload.endpoint,
            payload.keys.model_dump(),
            user_agent=payload.user_agent,
            user_id=session.user_id
        )
    except SupabaseError as e:
        logger.error(f"Failed to save push subscription: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, "Failed to save subscription")
    return subscription.to_row()


@router.post("/unsubscribe", response_class=PlainTextResponse)
async def unsubscribe(request: Request):
    """Delete a subscription by endpoint with service-role credentials.

    Plain-text responses: 400 "Missing endpoint", 200 "OK", 500 "Error".
    """
    try:
        try:
            body = json.loads(await request.body() or b"{}")
        except ValueError:
            body = {}
        endpoint = body.get("endpoint") if isinstance(body, dict) else None
        if not endpoint:
            return PlainTextResponse("Missing endpoint", status_code=400)

        client = create_service_client()
        if client is None:
            return PlainTextResponse("Error", status_code=500)

        async with client:
            await ReminderStore(client).remove_push_subscription(endpoint)
        return PlainTextResponse("OK")
    except Exception as e:
        logger.error(f"Unsubscribe failed: {sanitize_for_log(e)}")
        return PlainTextResponse("Error", status_code=500)
