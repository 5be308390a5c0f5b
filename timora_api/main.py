"""Timora API - coach proxy, reminders, push and snapshots.

Run with: uvicorn timora_api.main:app --port 8100
"""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from domains.finance import FinanceDomain
from domains.habits import HabitsDomain
from domains.recovery import RecoveryDomain
from domains.sleep import SleepDomain
from logger import logger
from registry import registry
from .ai_routes import router as ai_router
from .push_routes import router as push_router
from .reminder_routes import router as reminder_router
from .snapshot_routes import router as snapshot_router


def register_domains() -> None:
    """Register every coach persona (idempotent)."""
    for domain in (SleepDomain(), FinanceDomain(), HabitsDomain(), RecoveryDomain()):
        if registry.get_by_name(domain.name) is None:
            registry.register(domain)
            logger.info(f"Registered coach: {domain.name}")


register_domains()

app = FastAPI(
    title="Timora API",
    description="Wellness tracker backend: AI coaches, reminders, push and snapshots",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["content-type", "authorization", "x-dispatch-secret"]
)

app.include_router(ai_router)
app.include_router(reminder_router)
app.include_router(push_router)
app.include_router(snapshot_router)


# ============================================================
# Health Check
# ============================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Timora API",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}
