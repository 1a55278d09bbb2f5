"""
Storefront - Main FastAPI Application

Single entry point for catalog, pricing, order and webhook routes.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront import __version__, config
from storefront.logging import get_logger
from storefront.routers import (
    cron_router,
    orders_router,
    prices_router,
    products_router,
    webhooks_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info(f"Storefront API {__version__} starting")
    yield
    logger.info("Storefront API shutting down")


app = FastAPI(
    title="Storefront",
    description="Product catalog, gated pricing, orders and payment webhooks",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router)
app.include_router(prices_router)
app.include_router(orders_router)
app.include_router(webhooks_router)
app.include_router(cron_router)


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "storefront"}
