"""
Storefront errors.

Message constants are shared by services and routers; exception classes mark
the conditions callers are expected to handle.
"""

# Cart errors
ERROR_CART_ITEM_NOT_FOUND = "Item not found in cart"
ERROR_CART_EMPTY = "Cart is empty"

# Catalog errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_CATALOG_UNAVAILABLE = "Failed to fetch products"
ERROR_MISSING_REF = "Missing required parameter: ref"
ERROR_FILTERS_UNAVAILABLE = "Failed to fetch filter options"
ERROR_DETAILS_UNAVAILABLE = "Failed to fetch product details"
ERROR_PRODUCT_REF_REQUIRED = "Missing required field: ref"
ERROR_PRODUCT_WRITE_DENIED = "Insufficient permissions to modify products"
ERROR_PRODUCT_WRITE_FAILED = "Failed to save product"

# Pricing errors
ERROR_PRICE_ACCESS_DENIED = "Insufficient permissions to view prices"
ERROR_PRICE_UPDATE_DENIED = "Insufficient permissions to update prices"
ERROR_PRICE_REQUIRED_FIELDS = "Product ref and unit price are required"
ERROR_PRICE_FETCH_FAILED = "Failed to fetch prices"
ERROR_PRICE_UPDATE_FAILED = "Failed to update price"

# Order errors
ERROR_ORDER_NOT_FOUND = "Order not found"
ERROR_ORDER_REQUIRED_FIELDS = "Missing required fields: customer_name, total_amount, items"

# Payment errors
ERROR_INVALID_SIGNATURE = "Invalid signature"

# Generic errors
ERROR_INTERNAL = "Internal server error"
ERROR_AUTH_REQUIRED = "Authorization required"

# PostgREST code returned when row-level security rejects the JWT
POSTGREST_PERMISSION_DENIED = "PGRST301"


class StorefrontError(Exception):
    """Base class for storefront errors."""


class CatalogUnavailableError(StorefrontError):
    """Product fetch failed after retries."""


class ProductValidationError(StorefrontError):
    """Product payload is missing required data."""


class ProductWriteDenied(StorefrontError):
    """Row-level security rejected a product write."""


class PriceAccessDenied(StorefrontError):
    """The current user's role does not grant access to price rows."""


class OrderValidationError(StorefrontError):
    """Order payload is missing required data."""


class OrderNotFoundError(StorefrontError):
    """No order matches the given identifier."""


def is_permission_error(code: str | None, message: str | None) -> bool:
    """Tell whether a backend error is a row-level-security rejection."""
    if code == POSTGREST_PERMISSION_DENIED:
        return True
    return "policy" in (message or "").lower()
