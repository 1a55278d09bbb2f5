"""
Catalog Domain Service

Paginated, filtered product listing and admin product writes. Price
decoration is a separate optional step that only runs when the pricing gate
grants access, and never fails the product fetch.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from storefront import config
from storefront.errors import (
    CatalogUnavailableError,
    ERROR_CATALOG_UNAVAILABLE,
    ERROR_DETAILS_UNAVAILABLE,
    ERROR_FILTERS_UNAVAILABLE,
    ERROR_MISSING_REF,
    ERROR_PRODUCT_REF_REQUIRED,
    ProductValidationError,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import (
    CatalogFilters,
    FilterOptions,
    Product,
    ProductDetails,
    ProductPage,
    product_row_from_payload,
)
from storefront.pricing import PricingGate
from .repository import ProductRepository

logger = get_logger(__name__)


def has_known_stock(row: dict[str, Any]) -> bool:
    """
    Stock rule for listing: rows with unknown stock are hidden.

    None, a missing field or a blank string count as unknown. Zero is known
    stock, so out-of-stock products are still listed.
    """
    qty = row.get("qty")
    if qty is None:
        return False
    if isinstance(qty, str) and not qty.strip():
        return False
    return True


def _split_distinct(rows: list[dict[str, Any]], column: str) -> list[str]:
    values = {
        part.strip()
        for row in rows
        for part in str(row.get(column) or "").split(",")
        if part.strip()
    }
    return sorted(values)


class CatalogService:
    """Catalog queries composed with the pricing gate."""

    def __init__(self, repo: ProductRepository, pricing_gate: Optional[PricingGate] = None):
        self.repo = repo
        self.pricing_gate = pricing_gate

    async def get_products(
        self,
        filters: Optional[CatalogFilters] = None,
        page: int = 1,
        page_size: int = config.CATALOG_PAGE_SIZE,
        with_prices: bool = True,
    ) -> ProductPage:
        """
        One page of products matching the filters.

        `has_more` is a full-page heuristic: a page exactly `page_size` long
        implies another page. Raises CatalogUnavailableError when the fetch
        fails after retries.
        """
        filters = filters or CatalogFilters()
        page = max(1, page)
        page_size = max(1, page_size)

        try:
            rows = await self.repo.fetch_page(filters, page, page_size)
        except Exception as e:
            logger.error(f"Product fetch failed: {e}")
            raise CatalogUnavailableError(ERROR_CATALOG_UNAVAILABLE) from e

        visible = [row for row in rows if has_known_stock(row)]
        if len(visible) != len(rows):
            logger.debug(f"Hid {len(rows) - len(visible)} products with unknown stock")

        products = [Product.model_validate(row) for row in visible]
        if with_prices:
            products = await self.decorate_with_prices(products)

        return ProductPage(
            products=products,
            page=page,
            page_size=page_size,
            has_more=len(rows) == page_size,
            total=len(visible),
        )

    async def decorate_with_prices(self, products: list[Product]) -> list[Product]:
        """Attach prices when access is granted; otherwise return products unchanged."""
        if self.pricing_gate is None or not products:
            return products
        if not await self.pricing_gate.ensure_access():
            return products

        prices = await self.pricing_gate.load_prices([p.ref for p in products])
        if not prices:
            return products
        logger.info(f"Prices loaded for {len(prices)} products")
        return [
            product.model_copy(update={"price": prices[product.ref]}) if product.ref in prices else product
            for product in products
        ]

    async def get_product_details(self, product_ref: str) -> Optional[ProductDetails]:
        try:
            row = await self.repo.fetch_details(product_ref)
        except Exception as e:
            logger.error(f"Product details fetch failed: {e}")
            raise CatalogUnavailableError(ERROR_DETAILS_UNAVAILABLE) from e
        return ProductDetails.from_row(row) if row else None

    async def get_filter_options(self) -> FilterOptions:
        """Distinct, sorted filter values; multi-valued cells are comma separated."""
        try:
            rows = await self.repo.fetch_filter_rows()
        except Exception as e:
            logger.error(f"Filter options fetch failed: {e}")
            raise CatalogUnavailableError(ERROR_FILTERS_UNAVAILABLE) from e
        return FilterOptions(
            lines=_split_distinct(rows, "product_line"),
            product_types=_split_distinct(rows, "product_type"),
            skin_types=_split_distinct(rows, "skin_type_he"),
            types=_split_distinct(rows, "type"),
        )

    async def create_product(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert a product from an admin payload; returns the stored row."""
        product_ref = _payload_ref(payload)
        row = {"ref": product_ref, **product_row_from_payload(payload)}
        created = await self.repo.insert(row)
        logger.info(f"Product {sanitize_id_for_logging(product_ref)} created")
        return created

    async def update_product(self, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Patch the product named by `payload["ref"]`; None when it does not exist."""
        product_ref = _payload_ref(payload)
        row = product_row_from_payload(payload, partial=True)
        row["updated_at"] = datetime.now(timezone.utc).isoformat()
        return await self.repo.update(product_ref, row)

    async def delete_product(self, product_ref: str) -> Optional[dict[str, Any]]:
        if not (product_ref or "").strip():
            raise ProductValidationError(ERROR_MISSING_REF)
        deleted = await self.repo.delete(product_ref.strip())
        if deleted:
            logger.info(f"Product {sanitize_id_for_logging(product_ref)} deleted")
        return deleted


def _payload_ref(payload: dict[str, Any]) -> str:
    product_ref = str(payload.get("ref") or "").strip()
    if not product_ref:
        raise ProductValidationError(ERROR_PRODUCT_REF_REQUIRED)
    return product_ref
