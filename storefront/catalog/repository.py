"""Product Repository - `products` table reads and admin writes."""
from typing import Any, Optional

from postgrest.exceptions import APIError

from storefront import config
from storefront.db import Tables
from storefront.errors import ProductWriteDenied, is_permission_error
from storefront.logging import get_logger, sanitize_string_for_logging
from storefront.models import CatalogFilters
from storefront.repositories import BaseRepository
from storefront.retry import transient_retry

logger = get_logger(__name__)

# Only what the catalog grid needs; long-form content is fetched per product
LIST_COLUMNS = (
    "ref,hebrew_name,english_name,short_description_he,main_pic,size,"
    "product_line,type,product_type,skin_type_he,qty"
)
DETAIL_COLUMNS = (
    "ref,description_he,active_ingredients_he,usage_instructions_he,"
    "ingredients,header,french_name,pics"
)
FILTER_COLUMNS = "product_line,product_type,skin_type_he,type"


def _filter_value(value: str) -> str:
    """Strip characters that would break a PostgREST or= expression."""
    return "".join(ch for ch in value.strip() if ch not in ",()")


class ProductRepository(BaseRepository):
    """Product catalog queries with retry on transient transport errors."""

    def __init__(
        self,
        client,
        retry_attempts: int = config.CATALOG_RETRY_ATTEMPTS,
        retry_backoff: float = config.CATALOG_RETRY_BACKOFF_SECONDS,
    ):
        super().__init__(client)
        self.retry_attempts = retry_attempts
        self.retry_backoff = retry_backoff

    async def _execute(self, query):
        async for attempt in transient_retry(self.retry_attempts, self.retry_backoff):
            with attempt:
                return await query.execute()

    async def fetch_page(self, filters: CatalogFilters, page: int, page_size: int) -> list[dict[str, Any]]:
        """Raw product rows for one page, ordered by ref."""
        query = self.client.table(Tables.PRODUCTS).select(LIST_COLUMNS)

        search = _filter_value(filters.search)
        if search:
            query = query.or_(
                f"ref.ilike.%{search}%,hebrew_name.ilike.%{search}%,english_name.ilike.%{search}%"
            )
        line = _filter_value(filters.line)
        if line:
            query = query.or_(f"product_line.ilike.%{line}%,skin_type_he.ilike.%{line}%")
        if filters.product_type:
            query = query.ilike("product_type", f"%{filters.product_type.strip()}%")
        if filters.skin_type:
            query = query.ilike("skin_type_he", f"%{filters.skin_type.strip()}%")
        if filters.type:
            query = query.ilike("type", f"%{filters.type.strip()}%")

        offset = (page - 1) * page_size
        query = query.order("ref").range(offset, offset + page_size - 1)

        result = await self._execute(query)
        rows = result.data or []
        logger.info(
            f"Fetched {len(rows)} product rows (page {page}, size {page_size}, "
            f"search={sanitize_string_for_logging(filters.search or None)})"
        )
        return rows

    async def fetch_details(self, product_ref: str) -> Optional[dict[str, Any]]:
        """Long-form content of one product, or None."""
        query = (
            self.client.table(Tables.PRODUCTS)
            .select(DETAIL_COLUMNS)
            .eq("ref", product_ref)
            .limit(1)
        )
        result = await self._execute(query)
        return result.data[0] if result.data else None

    async def fetch_filter_rows(self) -> list[dict[str, Any]]:
        """Rows carrying the filterable columns."""
        query = (
            self.client.table(Tables.PRODUCTS)
            .select(FILTER_COLUMNS)
            .not_.is_("product_line", "null")
            .not_.is_("product_type", "null")
        )
        result = await self._execute(query)
        return result.data or []

    # Writes run on the caller's session and are not retried

    async def _write(self, query) -> list[dict[str, Any]]:
        try:
            result = await query.execute()
        except APIError as e:
            if is_permission_error(e.code, e.message):
                raise ProductWriteDenied(e.message or "product write denied") from e
            raise
        return result.data or []

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._write(self.client.table(Tables.PRODUCTS).insert(row))
        return rows[0] if rows else row

    async def update(self, product_ref: str, row: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Patch one product; None when no product has this ref."""
        rows = await self._write(self.client.table(Tables.PRODUCTS).update(row).eq("ref", product_ref))
        return rows[0] if rows else None

    async def delete(self, product_ref: str) -> Optional[dict[str, Any]]:
        """Delete one product and return the removed row, or None."""
        rows = await self._write(self.client.table(Tables.PRODUCTS).delete().eq("ref", product_ref))
        return rows[0] if rows else None
