"""Cart manager: the authoritative in-memory cart and its mutations."""
from dataclasses import replace
from decimal import Decimal
from typing import Any, Optional, Union

from storefront import config
from storefront.errors import ERROR_CART_ITEM_NOT_FOUND
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.money import non_negative, to_float
from .models import Cart, CartItem, ProductSnapshot
from .storage import CartPersistence, FileStorage

logger = get_logger(__name__)

ProductLike = Union[Product, dict[str, Any]]


class CartManager:
    """
    Holds one session's cart.

    Every mutation replaces the whole Cart value, so readers always see a
    consistent snapshot and totals are recomputed from the items. Mutations
    schedule a debounced save when a persistence adapter is attached.

    Errors that the UI should show (e.g. updating a missing item) are kept in
    `error` instead of being raised.
    """

    def __init__(self, persistence: Optional[CartPersistence] = None, cart: Optional[Cart] = None):
        self.persistence = persistence
        self._cart = cart or Cart()
        self.error: Optional[str] = None

    @classmethod
    async def create(cls, persistence: Optional[CartPersistence] = None) -> "CartManager":
        """Build a manager rehydrated from persisted storage."""
        cart = await persistence.load() if persistence else Cart()
        if cart.items:
            logger.info(f"Restored cart with {len(cart.items)} items")
        return cls(persistence=persistence, cart=cart)

    @property
    def cart(self) -> Cart:
        return self._cart

    def _commit(self, items: list[CartItem]) -> Cart:
        self._cart = self._cart.with_items(items)
        if self.persistence is not None:
            self.persistence.schedule_save(self._cart)
        return self._cart

    # ==================== MUTATIONS ====================

    async def add_item(self, product: ProductLike, quantity: int, notes: Optional[str] = None) -> Cart:
        """
        Add a product; an existing line has its quantity increased instead.

        Notes overwrite the line's notes only when given.
        """
        self.error = None
        if not isinstance(product, Product):
            product = Product.model_validate(product)

        product_id = product.product_id
        if not product_id:
            self.error = "Product has no id"
            logger.error("Cannot add product without id or ref to cart")
            return self._cart

        quantity = max(1, int(quantity))
        items = list(self._cart.items)
        existing = self._cart.find(product_id)

        if existing is not None:
            items[items.index(existing)] = replace(
                existing,
                quantity=existing.quantity + quantity,
                notes=notes if notes else existing.notes,
            )
        else:
            items.append(
                CartItem(
                    product_id=product_id,
                    product_name=product.name,
                    quantity=quantity,
                    # Known price if the product was decorated, else resolved later
                    unit_price=product.unit_price or Decimal("0"),
                    unit_type=product.size or "",
                    notes=notes or "",
                    product=ProductSnapshot.from_product(product),
                )
            )

        logger.info(f"Added {quantity}x {sanitize_id_for_logging(product_id)} to cart")
        return self._commit(items)

    async def update_item(self, product_id: str, quantity: int, notes: Optional[str] = None) -> Cart:
        """Set a line's quantity (and notes); quantity <= 0 removes the line."""
        self.error = None
        existing = self._cart.find(product_id)
        if existing is None:
            self.error = ERROR_CART_ITEM_NOT_FOUND
            logger.error(f"Cannot update cart item {sanitize_id_for_logging(product_id)}: not in cart")
            return self._cart

        if quantity <= 0:
            items = [item for item in self._cart.items if item.product_id != product_id]
        else:
            updated = replace(
                existing,
                quantity=int(quantity),
                notes=notes if notes is not None else existing.notes,
            )
            items = [updated if item is existing else item for item in self._cart.items]

        return self._commit(items)

    async def update_item_price(self, product_id: str, unit_price) -> Cart:
        """Patch a line's unit price; a missing line is a no-op."""
        self.error = None
        existing = self._cart.find(product_id)
        if existing is None:
            logger.warning(f"Item {sanitize_id_for_logging(product_id)} not found in cart for price update")
            return self._cart

        updated = replace(existing, unit_price=non_negative(unit_price))
        items = [updated if item is existing else item for item in self._cart.items]
        return self._commit(items)

    async def remove_item(self, product_id: str) -> Cart:
        self.error = None
        items = [item for item in self._cart.items if item.product_id != product_id]
        return self._commit(items)

    async def clear_cart(self) -> Cart:
        self.error = None
        logger.info("Cart cleared")
        return self._commit([])

    async def adjust_quantity(self, product_id: str, delta: int) -> Cart:
        """
        Step a line's quantity by delta, clamped to [0, MAX_ITEM_QUANTITY].

        Reaching 0 removes the line.
        """
        existing = self._cart.find(product_id)
        if existing is None:
            return await self.update_item(product_id, delta)
        new_quantity = min(config.MAX_ITEM_QUANTITY, max(0, existing.quantity + delta))
        return await self.update_item(product_id, new_quantity)

    # ==================== QUERIES ====================

    def has_item(self, product_id: str) -> bool:
        return self._cart.find(product_id) is not None

    def get_item(self, product_id: str) -> Optional[CartItem]:
        return self._cart.find(product_id)

    def get_item_count(self) -> int:
        return self._cart.item_count

    def get_subtotal(self) -> Decimal:
        return self._cart.subtotal

    def get_total(self) -> Decimal:
        return self._cart.total

    def get_cart_summary(self) -> dict:
        """JSON-friendly view of the cart."""
        cart = self._cart
        return {
            "is_empty": cart.is_empty,
            "item_count": cart.item_count,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.unit_price),
                    "total_price": to_float(item.total_price),
                    "notes": item.notes,
                }
                for item in cart.items
            ],
            "subtotal": to_float(cart.subtotal),
            "total": to_float(cart.total),
            "last_updated": cart.last_updated.isoformat(),
        }

    async def close(self) -> None:
        """Write any pending save before shutdown."""
        if self.persistence is not None:
            await self.persistence.flush()


# Singleton instance
_cart_manager: Optional[CartManager] = None


async def get_cart_manager() -> CartManager:
    """Get the process-wide CartManager backed by device-local file storage."""
    global _cart_manager
    if _cart_manager is None:
        _cart_manager = await CartManager.create(CartPersistence(FileStorage()))
    return _cart_manager
