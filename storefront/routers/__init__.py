"""
FastAPI Routers Package

All routers are included in api/index.py.
"""

from storefront.routers.cron import router as cron_router
from storefront.routers.orders import router as orders_router
from storefront.routers.prices import router as prices_router
from storefront.routers.products import router as products_router
from storefront.routers.webhooks import router as webhooks_router

__all__ = [
    "cron_router",
    "orders_router",
    "prices_router",
    "products_router",
    "webhooks_router",
]
