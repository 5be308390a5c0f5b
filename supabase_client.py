"""Supabase client using PostgREST directly.

One explicitly constructed client per caller: the dispatcher and the
unsubscribe handler use the service role key, per-user API requests use the
anon key plus the caller's JWT so row-level security scopes every query.
"""

from typing import Any

import httpx

from config import (
    SUPABASE_URL,
    SUPABASE_SERVICE_ROLE_KEY,
    SUPABASE_ANON_KEY,
    SUPABASE_TIMEOUT_SECONDS,
)
from logger import logger


class SupabaseError(Exception):
    """Non-2xx or transport failure talking to Supabase."""

    def __init__(self, status_code: int | None, detail: str):
        super().__init__(f"Supabase error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class SupabaseClient:
    """Thin async wrapper over the Supabase REST (PostgREST) API."""

    def __init__(
        self,
        url: str,
        key: str,
        access_token: str | None = None,
        timeout: float = SUPABASE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict:
        """Get headers for Supabase API calls."""
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.access_token or self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> "SupabaseClient":
        """Open the underlying HTTP connection pool."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.url}/rest/v1",
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport
            )
        return self

    async def dispose(self) -> None:
        """Close the connection pool. Safe to call more than once."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SupabaseClient":
        return await self.connect()

    async def __aexit__(self, *exc_info) -> None:
        await self.dispose()

    async def _request(
        self,
        method: str,
        table: str,
        params: dict | None = None,
        json: Any = None,
        headers: dict | None = None
    ) -> list[dict]:
        if self._client is None:
            raise RuntimeError("SupabaseClient used before connect()")

        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=headers
            )
        except httpx.HTTPError as e:
            raise SupabaseError(None, f"{type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Supabase {method} {table} failed - Status: {response.status_code}")
            raise SupabaseError(response.status_code, response.text)

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    async def select(
        self,
        table: str,
        filters: dict[str, str] | None = None,
        columns: str = "*",
        order: str | None = None,
        limit: int | None = None
    ) -> list[dict]:
        """Fetch rows.

        Args:
            table: Table name
            filters: PostgREST filters, e.g. {"enabled": "eq.true"}
            columns: Comma separated column list
            order: Order clause, e.g. "next_run_at.asc"
            limit: Maximum rows

        Returns:
            List of row dicts
        """
        params = {"select": columns, **(filters or {})}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def select_one(
        self,
        table: str,
        filters: dict[str, str],
        columns: str = "*"
    ) -> dict | None:
        """Fetch a single row or None (maybeSingle semantics)."""
        rows = await self.select(table, filters, columns=columns, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        """Insert one or more rows and return them."""
        return await self._request("POST", table, json=rows)

    async def update(self, table: str, values: dict, filters: dict[str, str]) -> list[dict]:
        """Update matching rows and return them."""
        if not filters:
            raise ValueError("Refusing to update without filters")
        return await self._request("PATCH", table, params=filters, json=values)

    async def delete(self, table: str, filters: dict[str, str]) -> list[dict]:
        """Delete matching rows and return them."""
        if not filters:
            raise ValueError("Refusing to delete without filters")
        return await self._request("DELETE", table, params=filters)

    async def upsert(
        self,
        table: str,
        rows: dict | list[dict],
        on_conflict: str
    ) -> list[dict]:
        """Insert or merge rows on a unique column set."""
        return await self._request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json=rows,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"}
        )


    async def get_user(self) -> dict | None:
        """Resolve the access token to its auth user, or None if rejected."""
        if self._client is None:
            raise RuntimeError("SupabaseClient used before connect()")
        if not self.access_token:
            return None

        try:
            response = await self._client.get(f"{self.url}/auth/v1/user")
        except httpx.HTTPError as e:
            raise SupabaseError(None, f"{type(e).__name__}: {e}") from e

        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            raise SupabaseError(response.status_code, response.text)
        return response.json()


def create_service_client(**kwargs) -> SupabaseClient | None:
    """Service-role client, or None when Supabase is not configured."""
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
        return None
    return SupabaseClient(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, **kwargs)


def create_user_client(access_token: str, **kwargs) -> SupabaseClient | None:
    """Client acting as the authenticated user (RLS applies)."""
    if not SUPABASE_URL or not SUPABASE_ANON_KEY:
        logger.warning("Missing SUPABASE_URL or SUPABASE_ANON_KEY")
        return None
    return SupabaseClient(SUPABASE_URL, SUPABASE_ANON_KEY, access_token=access_token, **kwargs)
