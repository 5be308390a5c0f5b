"""Shared FastAPI dependencies: bearer auth and per-request Supabase clients."""

from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException

from logger import logger
from supabase_client import SupabaseClient, SupabaseError, create_user_client
from utils import sanitize_for_log


@dataclass
class UserSession:
    """Authenticated caller and a client that acts as them (RLS applies)."""
    user_id: str
    client: SupabaseClient


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the JWT from an Authorization: Bearer header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(401, "Missing bearer token")
    token = authorization[7:].strip()
    if not token:
        raise HTTPException(401, "Missing bearer token")
    return token


async def user_session(token: str = Depends(bearer_token)) -> AsyncIterator[UserSession]:
    """Open a user-scoped client for the duration of one request."""
    client = create_user_client(token)
    if client is None:
        raise HTTPException(503, "Supabase not configured")

    await client.connect()
    try:
        try:
            user = await client.get_user()
        except SupabaseError as e:
            logger.error(f"Auth lookup failed: {sanitize_for_log(e)}")
            raise HTTPException(503, "Auth service unavailable")
        if not user or not user.get("id"):
            raise HTTPException(401, "Invalid or expired token")

        yield UserSession(user_id=user["id"], client=client)
    finally:
        await client.dispose()
