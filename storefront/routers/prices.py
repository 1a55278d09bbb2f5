"""
Prices API Router

Runs with the caller's identity: row-level security on `prices` decides who
sees and who edits prices. A policy rejection is a normal answer
(`canViewPrices: false`), not a server error.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from storefront import config
from storefront.errors import (
    ERROR_PRICE_ACCESS_DENIED,
    ERROR_PRICE_FETCH_FAILED,
    ERROR_PRICE_REQUIRED_FIELDS,
    ERROR_PRICE_UPDATE_DENIED,
    ERROR_PRICE_UPDATE_FAILED,
    PriceAccessDenied,
)
from storefront.logging import get_logger
from storefront.pricing import PriceRepository, PricingGate
from storefront.routers.deps import get_price_repository, get_pricing_gate

logger = get_logger(__name__)

router = APIRouter(tags=["prices"])


class PriceUpsertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_ref: Optional[str] = Field(default=None, alias="productRef")
    unit_price: Optional[float] = Field(default=None, alias="unitPrice")
    currency: str = config.DEFAULT_CURRENCY
    discount_price: Optional[float] = Field(default=None, alias="discountPrice")
    price_tier: str = Field(default=config.DEFAULT_PRICE_TIER, alias="priceTier")


@router.get("/api/prices")
async def get_prices(
    refs: Optional[str] = None,
    repo: PriceRepository = Depends(get_price_repository),
):
    """Prices keyed by product ref; `refs` is a comma-separated filter."""
    ref_list = None
    if refs:
        ref_list = [ref.strip() for ref in refs.split(",") if ref.strip()] or None

    try:
        prices = await repo.get_prices(ref_list)
    except PriceAccessDenied:
        return {"prices": {}, "canViewPrices": False, "message": ERROR_PRICE_ACCESS_DENIED}
    except Exception as e:
        logger.error(f"Prices API error: {e}")
        return JSONResponse({"error": ERROR_PRICE_FETCH_FAILED}, status_code=500)

    return {
        "prices": {ref: price.to_api() for ref, price in prices.items()},
        "canViewPrices": True,
        "count": len(prices),
    }


@router.get("/api/prices/check-access")
async def check_price_access(gate: PricingGate = Depends(get_pricing_gate)):
    """Whether the caller may view prices. Never fails: errors read as no access."""
    can_view = await gate.check_access()
    if can_view:
        return {
            "canViewPrices": True,
            "role": "authenticated",
            "message": "User has pricing access",
        }
    return {
        "canViewPrices": False,
        "role": "unauthorized",
        "message": "User does not have permission to view prices",
    }


@router.post("/api/prices")
async def upsert_price(
    request: PriceUpsertRequest,
    repo: PriceRepository = Depends(get_price_repository),
):
    """Create or update a product price (admin only)."""
    if not request.product_ref or not request.unit_price:
        return JSONResponse({"error": ERROR_PRICE_REQUIRED_FIELDS}, status_code=400)

    try:
        price = await repo.upsert_price(
            request.product_ref,
            request.unit_price,
            currency=request.currency,
            discount_price=request.discount_price,
            price_tier=request.price_tier,
        )
    except PriceAccessDenied:
        return JSONResponse({"error": ERROR_PRICE_UPDATE_DENIED}, status_code=403)
    except Exception as e:
        logger.error(f"Price update error: {e}")
        return JSONResponse({"error": ERROR_PRICE_UPDATE_FAILED}, status_code=500)

    return {"price": {"productRef": request.product_ref, **price.to_api()}}
