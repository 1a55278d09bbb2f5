"""
Shared Dependencies for Routers

Services are built per request. Anything acting for the caller runs on a
PostgREST session carrying the caller's JWT, so row-level security decides
what it may read or change; only the catalog reads and payment webhooks use
the service role. Tests swap clients through `app.dependency_overrides`.
"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException

from storefront.catalog import CatalogService, ProductRepository
from storefront.db import create_user_client, get_supabase
from storefront.errors import ERROR_AUTH_REQUIRED
from storefront.orders import OrderRepository, OrderService
from storefront.payments import PaymentWebhookService
from storefront.pricing import PriceRepository, PricingGate


def extract_bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Access token from an `Authorization: Bearer <jwt>` header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_bearer_token(access_token: Optional[str] = Depends(extract_bearer_token)) -> str:
    """Reject anonymous callers before any backend call is made."""
    if not access_token:
        raise HTTPException(status_code=401, detail=ERROR_AUTH_REQUIRED)
    return access_token


async def get_service_client():
    """Service-role client (row-level security bypassed)."""
    return await get_supabase()


async def get_user_client(access_token: Optional[str] = Depends(extract_bearer_token)) -> AsyncIterator:
    """Session acting as the caller; its connections close with the request."""
    client = create_user_client(access_token)
    try:
        yield client
    finally:
        await client.aclose()


async def get_price_repository(client=Depends(get_user_client)) -> PriceRepository:
    return PriceRepository(client)


async def get_pricing_gate(repo: PriceRepository = Depends(get_price_repository)) -> PricingGate:
    # One request is one pricing session
    return PricingGate(repo)


async def get_catalog_service(
    client=Depends(get_service_client),
    gate: PricingGate = Depends(get_pricing_gate),
) -> CatalogService:
    return CatalogService(ProductRepository(client), gate)


async def get_product_admin_service(client=Depends(get_user_client)) -> CatalogService:
    """Catalog writes, allowed or refused by row-level security on `products`."""
    return CatalogService(ProductRepository(client))


async def get_order_service(client=Depends(get_user_client)) -> OrderService:
    return OrderService(OrderRepository(client))


async def get_webhook_service(client=Depends(get_service_client)) -> PaymentWebhookService:
    return PaymentWebhookService(client)
