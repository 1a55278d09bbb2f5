"""
Order Service

Turns a cart into an order row and applies later status/content updates.
"""
from typing import Optional

from storefront.cart import Cart
from storefront.errors import (
    ERROR_CART_EMPTY,
    ERROR_ORDER_NOT_FOUND,
    ERROR_ORDER_REQUIRED_FIELDS,
    OrderNotFoundError,
    OrderValidationError,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Order, OrderCreate, OrderUpdate
from storefront.money import to_float
from .repository import OrderRepository

logger = get_logger(__name__)


def cart_to_order_lines(cart: Cart) -> list[dict]:
    """Order line snapshot of every cart item."""
    return [
        {
            "product_id": item.product_id,
            "product_ref": item.product_ref,
            "product_name": item.product_name,
            "quantity": item.quantity,
            "unit_price": to_float(item.unit_price),
            "total_price": to_float(item.total_price),
            "notes": item.notes,
        }
        for item in cart.items
    ]


class OrderService:
    def __init__(self, repo: OrderRepository):
        self.repo = repo

    async def submit_cart(
        self,
        cart: Cart,
        customer_name: str,
        customer_email: Optional[str] = None,
        customer_phone: Optional[str] = None,
        client_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """
        Persist the cart as a pending order.

        Raises OrderValidationError for an empty cart or a missing customer
        name. The cart itself is left untouched; clearing it after a
        successful submission is up to the caller.
        """
        if cart.is_empty:
            raise OrderValidationError(ERROR_CART_EMPTY)
        if not (customer_name or "").strip():
            raise OrderValidationError(ERROR_ORDER_REQUIRED_FIELDS)

        order = OrderCreate(
            client_id=client_id,
            customer_name=customer_name.strip(),
            customer_email=customer_email,
            customer_phone=customer_phone,
            items=cart_to_order_lines(cart),
            total_amount=cart.total,
            notes=notes,
        )
        return await self.create_order(order)

    async def create_order(self, order: OrderCreate) -> Order:
        if not order.customer_name.strip() or not order.items:
            raise OrderValidationError(ERROR_ORDER_REQUIRED_FIELDS)
        created = await self.repo.create(order)
        logger.info(
            f"Order {sanitize_id_for_logging(created.id)} created: "
            f"{len(order.items)} lines, total {order.total_amount}"
        )
        return created

    async def update_order(self, order_id: str, patch: OrderUpdate) -> Order:
        updated = await self.repo.update(order_id, patch)
        if updated is None:
            raise OrderNotFoundError(ERROR_ORDER_NOT_FOUND)
        logger.info(f"Order {sanitize_id_for_logging(order_id)} updated")
        return updated

    async def get_order(self, order_id: str) -> Optional[Order]:
        return await self.repo.get_by_id(order_id)

    async def list_orders(self, limit: int = 100) -> list[Order]:
        return await self.repo.list_recent(limit)
