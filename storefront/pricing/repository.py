"""Price Repository - RLS-protected `prices` table."""
from datetime import datetime, timezone
from typing import Iterable, Optional

from postgrest.exceptions import APIError

from storefront import config
from storefront.db import Tables
from storefront.errors import PriceAccessDenied, is_permission_error
from storefront.logging import get_logger
from storefront.models import PriceInfo
from storefront.money import to_float
from storefront.repositories import BaseRepository
from storefront.retry import transient_retry

logger = get_logger(__name__)

PRICE_COLUMNS = "product_ref,unit_price,currency,discount_price,price_tier,updated_at"


def _raise_if_denied(error: APIError) -> None:
    if is_permission_error(error.code, error.message):
        raise PriceAccessDenied(error.message or "price access denied") from error


class PriceRepository(BaseRepository):
    """
    Price reads and admin writes.

    Row-level security decides who may read prices, so the client passed in
    must act as the end user. A policy rejection surfaces as PriceAccessDenied.
    """

    def __init__(
        self,
        client,
        retry_attempts: int = config.CATALOG_RETRY_ATTEMPTS,
        retry_backoff: float = config.CATALOG_RETRY_BACKOFF_SECONDS,
    ):
        super().__init__(client)
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff

    async def get_prices(self, product_refs: Optional[Iterable[str]] = None) -> dict[str, PriceInfo]:
        """Prices keyed by product ref; refs without a price row are absent."""
        query = self.client.table(Tables.PRICES).select(PRICE_COLUMNS)
        if product_refs is not None:
            refs = list(product_refs)
            if not refs:
                return {}
            query = query.in_("product_ref", refs)

        try:
            async for attempt in transient_retry(self.retry_attempts, self.retry_backoff):
                with attempt:
                    result = await query.execute()
        except APIError as e:
            _raise_if_denied(e)
            raise

        return {
            str(row["product_ref"]): PriceInfo.from_row(row)
            for row in result.data or []
            if row.get("product_ref") is not None
        }

    async def check_access(self) -> bool:
        """
        Probe the table with a one-row read.

        Returns True when the read is allowed; raises PriceAccessDenied on a
        policy rejection.
        """
        try:
            await self.client.table(Tables.PRICES).select("product_ref").limit(1).execute()
        except APIError as e:
            _raise_if_denied(e)
            raise
        return True

    async def upsert_price(
        self,
        product_ref: str,
        unit_price,
        currency: str = config.DEFAULT_CURRENCY,
        discount_price=None,
        price_tier: str = config.DEFAULT_PRICE_TIER,
    ) -> PriceInfo:
        """Create or replace the price row of a product (admin only)."""
        data = {
            "product_ref": product_ref,
            "unit_price": to_float(unit_price),
            "currency": currency,
            "discount_price": to_float(discount_price) if discount_price is not None else None,
            "price_tier": price_tier,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            result = await self.client.table(Tables.PRICES).upsert(data).execute()
        except APIError as e:
            _raise_if_denied(e)
            raise

        row = result.data[0] if result.data else data
        logger.info(f"Price for {product_ref} set to {unit_price} {currency}")
        return PriceInfo.from_row(row)


__all__ = ["PriceRepository", "PRICE_COLUMNS"]
