"""
Database Module - Supabase and Redis Clients

Provides:
- Async Supabase client with the service role (orders webhooks, catalog reads)
- Per-request PostgREST session bound to the caller's JWT (row-level security
  on prices, products writes and orders)
- Upstash Redis client for the optional server-side cart backend

Every backend request is bounded by SUPABASE_TIMEOUT_SECONDS.
"""

from typing import Optional

import httpx
from postgrest import AsyncPostgrestClient
from postgrest.constants import DEFAULT_POSTGREST_CLIENT_HEADERS
from supabase._async.client import AsyncClient, create_client as acreate_client
from supabase.lib.client_options import AsyncClientOptions
from upstash_redis.asyncio import Redis as AsyncRedis

from storefront import config

_async_supabase_client: Optional[AsyncClient] = None
_redis_client: Optional[AsyncRedis] = None


def backend_timeout() -> httpx.Timeout:
    return httpx.Timeout(config.SUPABASE_TIMEOUT_SECONDS)


async def get_supabase() -> AsyncClient:
    """
    Get async Supabase client (singleton).

    Uses the service role key, so row-level security is bypassed.
    """
    global _async_supabase_client

    if _async_supabase_client is None:
        if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _async_supabase_client = await acreate_client(
            config.SUPABASE_URL,
            config.SUPABASE_SERVICE_ROLE_KEY,
            options=AsyncClientOptions(postgrest_client_timeout=backend_timeout()),
        )

    return _async_supabase_client


def create_user_client(access_token: str | None) -> AsyncPostgrestClient:
    """
    PostgREST session acting as the given user.

    Anonymous callers (no token) get the anon role. Each request carries its
    own identity, so the session is not shared; the caller must `aclose()` it.
    """
    if not config.SUPABASE_URL or not config.SUPABASE_ANON_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

    headers = {
        **DEFAULT_POSTGREST_CLIENT_HEADERS,
        "apikey": config.SUPABASE_ANON_KEY,
        "Authorization": f"Bearer {access_token or config.SUPABASE_ANON_KEY}",
    }
    return AsyncPostgrestClient(
        f"{config.SUPABASE_URL.rstrip('/')}/rest/v1",
        headers=headers,
        timeout=backend_timeout(),
    )


def get_redis() -> AsyncRedis:
    """Get async Upstash Redis client (singleton)."""
    global _redis_client

    if _redis_client is None:
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(
            url=config.UPSTASH_REDIS_REST_URL, token=config.UPSTASH_REDIS_REST_TOKEN
        )

    return _redis_client


class Tables:
    """Supabase table names."""

    PRODUCTS = "products"
    PRICES = "prices"
    ORDERS = "orders"
    PAYMENT_SESSIONS = "payment_sessions"
