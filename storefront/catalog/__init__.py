"""Catalog package: product queries and listing rules."""
from .repository import ProductRepository
from .service import CatalogService, has_known_stock

__all__ = ["ProductRepository", "CatalogService", "has_known_stock"]
