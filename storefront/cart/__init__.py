"""Cart package: models, storage, and manager facade."""
from .models import Cart, CartItem, ProductSnapshot, sanitize_cart_item
from .storage import CartPersistence, FileStorage, MemoryStorage, RedisStorage
from .service import CartManager, get_cart_manager

__all__ = [
    "Cart",
    "CartItem",
    "ProductSnapshot",
    "sanitize_cart_item",
    "CartPersistence",
    "FileStorage",
    "MemoryStorage",
    "RedisStorage",
    "CartManager",
    "get_cart_manager",
]
