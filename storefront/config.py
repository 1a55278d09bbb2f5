"""
Storefront configuration.

All settings come from environment variables and are read once on import.
"""

import os


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


# Supabase (hosted Postgres + auth)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")

# Upstash Redis (optional cart backend)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart persistence
CART_STORAGE_KEY = "mini-catalog-cart"
CART_VERSION = "1.0"
CART_STORAGE_DIR = os.environ.get("CART_STORAGE_DIR", os.path.join(os.path.expanduser("~"), ".storefront"))
CART_SAVE_DEBOUNCE_SECONDS = _float_env("CART_SAVE_DEBOUNCE_SECONDS", 0.3)
CART_REDIS_TTL_SECONDS = 86400  # 24 hours
MAX_ITEM_QUANTITY = 99

# Pricing
PRICE_ACCESS_TTL_SECONDS = _float_env("PRICE_ACCESS_TTL_SECONDS", 300.0)
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "ILS")
DEFAULT_PRICE_TIER = "standard"

# Catalog
CATALOG_PAGE_SIZE = _int_env("CATALOG_PAGE_SIZE", 50)
CATALOG_RETRY_ATTEMPTS = _int_env("CATALOG_RETRY_ATTEMPTS", 2)
CATALOG_RETRY_BACKOFF_SECONDS = _float_env("CATALOG_RETRY_BACKOFF_SECONDS", 0.8)

# Upper bound on a single backend request
SUPABASE_TIMEOUT_SECONDS = _float_env("SUPABASE_TIMEOUT_SECONDS", 10.0)

# Payment gateway (Hypay)
HYPAY_SECRET_KEY = os.environ.get("HYPAY_SECRET_KEY", "")
HYPAY_SIGNATURE_HEADER = "x-hypay-signature"

# Scheduled jobs
CRON_SECRET = os.environ.get("CRON_SECRET", "")

# HTTP
CORS_ALLOW_ORIGINS = [o.strip() for o in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]
