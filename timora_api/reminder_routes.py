"""Reminder API Routes.

CRUD for the caller's reminders (row-level security scopes every query to
the bearer token's user) plus a manual trigger for the server dispatcher.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

import config
from domains.reminders import ReminderDispatcher, ReminderStore, build_channel_registry
from jobs.reminder_dispatch import reminder_dispatch
from logger import logger
from supabase_client import SupabaseError, create_service_client
from utils import sanitize_for_log
from .deps import UserSession, user_session

router = APIRouter(prefix="/reminders", tags=["Reminders"])


# ============================================================
# Pydantic Models
# ============================================================

class ReminderCreate(BaseModel):
    """Create a reminder. next_run_at is computed when omitted."""
    type: str = "custom"
    title: str = "Reminder"
    message: str = ""
    time: Optional[str] = None
    recurrence: str = "once"
    start_date: Optional[str] = None
    enabled: bool = True
    next_run_at: Optional[str] = None


class ReminderUpdate(BaseModel):
    """Partial update. Set recompute to re-derive next_run_at."""
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    time: Optional[str] = None
    recurrence: Optional[str] = None
    start_date: Optional[str] = None
    enabled: Optional[bool] = None
    next_run_at: Optional[str] = None
    recompute: bool = False


class ReminderToggle(BaseModel):
    enabled: bool


# ============================================================
# Helper Functions
# ============================================================

def _backend_error(action: str, error: SupabaseError) -> HTTPException:
    logger.error(f"Failed to {action}: {sanitize_for_log(error)}")
    return HTTPException(error.status_code or 502, f"Failed to {action}")


# ============================================================
# Endpoints
# ============================================================

@router.get("")
async def list_reminders(session: UserSession = Depends(user_session)):
    """All of the caller's reminders, soonest first."""
    store = ReminderStore(session.client)
    reminders = await store.list_reminders()
    return {"reminders": [reminder.to_row() for reminder in reminders]}


@router.post("")
async def create_reminder(payload: ReminderCreate, session: UserSession = Depends(user_session)):
    """Create a reminder owned by the caller."""
    data = payload.model_dump(exclude_none=True)
    data["user_id"] = session.user_id
    try:
        reminder = await ReminderStore(session.client).create_reminder(data)
    except SupabaseError as e:
        raise _backend_error("create reminder", e)
    return reminder.to_row()


@router.post("/dispatch", response_class=PlainTextResponse)
async def dispatch_reminders(x_dispatch_secret: str | None = Header(default=None)):
    """Run the dispatcher once with service-role credentials."""
    if config.DISPATCH_SECRET and x_dispatch_secret != config.DISPATCH_SECRET:
        raise HTTPException(401, "Invalid dispatch secret")

    client = create_service_client()
    if client is None:
        report = await reminder_dispatch(None)
        return PlainTextResponse(report.body, status_code=report.status_code)

    async with client:
        dispatcher = ReminderDispatcher(ReminderStore(client), build_channel_registry())
        report = await reminder_dispatch(dispatcher)
    return PlainTextResponse(report.body, status_code=report.status_code)


@router.patch("/{reminder_id}")
async def update_reminder(
    reminder_id: str,
    patch: ReminderUpdate,
    session: UserSession = Depends(user_session)
):
    """Update fields of a reminder."""
    data = patch.model_dump(exclude_none=True)
    try:
        reminder = await ReminderStore(session.client).update_reminder(reminder_id, data)
    except SupabaseError as e:
        raise _backend_error("update reminder", e)
    if reminder is None:
        raise HTTPException(404, "Reminder not found")
    return reminder.to_row()


@router.post("/{reminder_id}/toggle")
async def toggle_reminder(
    reminder_id: str,
    toggle: ReminderToggle,
    session: UserSession = Depends(user_session)
):
    """Enable or disable a reminder."""
    try:
        reminder = await ReminderStore(session.client).toggle_reminder(reminder_id, toggle.enabled)
    except SupabaseError as e:
        raise _backend_error("toggle reminder", e)
    if reminder is None:
        raise HTTPException(404, "Reminder not found")
    return reminder.to_row()


@router.delete("/{reminder_id}")
async def delete_reminder(reminder_id: str, session: UserSession = Depends(user_session)):
    """Delete a reminder."""
    try:
        await ReminderStore(session.client).delete_reminder(reminder_id)
    except SupabaseError as e:
        raise _backend_error("delete reminder", e)
    return {"success": True, "deleted": reminder_id}
