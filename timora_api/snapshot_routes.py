"""Per-user snapshot and recovery log routes."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from domains.finance import WealthSnapshotStore
from domains.habits import HabitsSnapshotStore
from domains.recovery import RecoveryRecordStore, RecoverySnapshotStore
from domains.recovery.config import RECORD_KINDS
from domains.sleep import SleepSnapshotStore
from domains.snapshots import SnapshotStore
from logger import logger
from supabase_client import SupabaseError
from utils import sanitize_for_log
from .deps import UserSession, user_session

router = APIRouter(tags=["Snapshots"])

SNAPSHOT_STORES: dict[str, type[SnapshotStore]] = {
    "recovery": RecoverySnapshotStore,
    "habits": HabitsSnapshotStore,
    "wealth": WealthSnapshotStore,
    "sleep": SleepSnapshotStore,
}


class RecoveryEntry(BaseModel):
    """One recovery event. Accepts camelCase keys from the web client."""
    model_config = {"populate_by_name": True}

    type: str
    date: Optional[str] = None
    substance: Optional[str] = None
    amount: Optional[Any] = None
    craving_level: Optional[float] = Field(default=None, alias="cravingLevel")
    trigger: Optional[str] = None
    urge_duration_min: Optional[int] = Field(default=None, alias="urgeDurationMin")
    used_coping: Optional[Any] = Field(default=None, alias="usedCoping")
    notes: Optional[str] = None


def _store(kind: str, session: UserSession) -> SnapshotStore:
    store_cls = SNAPSHOT_STORES.get(kind)
    if store_cls is None:
        raise HTTPException(404, f"Unknown snapshot: {kind}")
    return store_cls(session.client, session.user_id)


@router.get("/snapshots/{kind}")
async def get_snapshot(kind: str, session: UserSession = Depends(user_session)):
    """Load (and seed on first access) the caller's snapshot."""
    store = _store(kind, session)
    try:
        return await store.get_snapshot()
    except SupabaseError as e:
        logger.error(f"Failed to load {kind} snapshot: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, f"Failed to load {kind} snapshot")


@router.patch("/snapshots/{kind}")
async def update_snapshot(
    kind: str,
    patch: dict[str, Any],
    session: UserSession = Depends(user_session)
):
    """Merge a partial update into the caller's snapshot."""
    store = _store(kind, session)
    try:
        return await store.update_snapshot(patch)
    except SupabaseError as e:
        logger.error(f"Failed to update {kind} snapshot: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, f"Failed to update {kind} snapshot")


@router.post("/recovery/logs")
async def add_recovery_log(entry: RecoveryEntry, session: UserSession = Depends(user_session)):
    """Record a recovery event and update the snapshot counters."""
    store = RecoverySnapshotStore(session.client, session.user_id)
    try:
        row = await store.save_entry(entry.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(400, str(e))
    except SupabaseError as e:
        logger.error(f"Failed to save recovery log: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, "Failed to save recovery log")
    return {"ok": True, "entry": row}


@router.get("/recovery/logs")
async def list_recovery_logs(
    limit: int = Query(default=50, ge=1, le=500),
    session: UserSession = Depends(user_session)
):
    """Most recent recovery events first."""
    store = RecoverySnapshotStore(session.client, session.user_id)
    try:
        logs = await store.list_logs(limit=limit)
    except SupabaseError as e:
        logger.error(f"Failed to list recovery logs: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, "Failed to list recovery logs")
    return {"logs": logs}


@router.get("/recovery/insights")
async def recovery_insights(session: UserSession = Depends(user_session)):
    """Score, readiness and suggestions for the recovery dashboard."""
    store = RecoverySnapshotStore(session.client, session.user_id)
    try:
        return await store.generate_insights()
    except SupabaseError as e:
        logger.error(f"Failed to build recovery insights: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, "Failed to build recovery insights")


# ============================================================
# Triggers, relapses and supports
# ============================================================

def _records(kind: str, session: UserSession) -> RecoveryRecordStore:
    if kind not in RECORD_KINDS:
        raise HTTPException(404, f"Unknown recovery record: {kind}")
    return RecoveryRecordStore(session.client, session.user_id, kind)


@router.get("/recovery/{kind}")
async def list_recovery_records(kind: str, session: UserSession = Depends(user_session)):
    store = _records(kind, session)
    try:
        return {kind: await store.list_records()}
    except SupabaseError as e:
        logger.error(f"Failed to list recovery {kind}: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, f"Failed to list recovery {kind}")


@router.post("/recovery/{kind}")
async def create_recovery_record(
    kind: str,
    values: dict[str, Any],
    session: UserSession = Depends(user_session)
):
    store = _records(kind, session)
    try:
        return await store.create_record(values)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except SupabaseError as e:
        logger.error(f"Failed to save recovery {kind}: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, f"Failed to save recovery {kind}")


@router.patch("/recovery/{kind}/{record_id}")
async def update_recovery_record(
    kind: str,
    record_id: str,
    patch: dict[str, Any],
    session: UserSession = Depends(user_session)
):
    store = _records(kind, session)
    try:
        row = await store.update_record(record_id, patch)
    except ValueError as e:
        raise HTTPException(400, str(e))
    except SupabaseError as e:
        logger.error(f"Failed to update recovery {kind}: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, f"Failed to update recovery {kind}")
    if row is None:
        raise HTTPException(404, f"Recovery record not found: {record_id}")
    return row


@router.delete("/recovery/{kind}/{record_id}")
async def delete_recovery_record(
    kind: str,
    record_id: str,
    session: UserSession = Depends(user_session)
):
    store = _records(kind, session)
    try:
        return await store.delete_record(record_id)
    except SupabaseError as e:
        logger.error(f"Failed to delete recovery {kind}: {sanitize_for_log(e)}")
        raise HTTPException(e.status_code or 502, f"Failed to delete recovery {kind}")
