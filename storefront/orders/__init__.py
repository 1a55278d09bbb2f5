"""Orders package."""
from .repository import OrderRepository
from .service import OrderService, cart_to_order_lines

__all__ = ["OrderRepository", "OrderService", "cart_to_order_lines"]
