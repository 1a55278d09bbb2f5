"""
Products API Router

Public catalog endpoint. One path serves the product list, the filter
options (`filters=true`) and the long-form details (`details=true&ref=`).
Create, update and delete are admin operations that run with the caller's
identity, so row-level security on `products` decides who may write.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from storefront import config
from storefront.catalog import CatalogService
from storefront.errors import (
    CatalogUnavailableError,
    ERROR_MISSING_REF,
    ERROR_PRODUCT_NOT_FOUND,
    ERROR_PRODUCT_WRITE_DENIED,
    ERROR_PRODUCT_WRITE_FAILED,
    ProductValidationError,
    ProductWriteDenied,
)
from storefront.logging import get_logger
from storefront.models import CatalogFilters, Product
from storefront.routers.deps import get_catalog_service, get_product_admin_service, require_bearer_token

logger = get_logger(__name__)

router = APIRouter(tags=["products"])


def _product_to_api(product: Product) -> dict:
    data = product.model_dump(exclude={"price"})
    data["price"] = product.price.to_api() if product.price else None
    return data


def _unavailable(error: CatalogUnavailableError) -> JSONResponse:
    # The client shows a retry button for this response
    return JSONResponse({"success": False, "error": str(error), "retry": True}, status_code=500)


@router.get("/api/products")
async def get_products(
    search: str = "",
    line: str = "",
    page: int = Query(1, ge=1),
    page_size: int = Query(config.CATALOG_PAGE_SIZE, ge=1, le=500, alias="pageSize"),
    product_type: str = Query("", alias="productType"),
    skin_type: str = Query("", alias="skinType"),
    type: str = "",
    details: bool = False,
    filters: bool = False,
    ref: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Paginated product list, filter options or product details."""
    if filters:
        try:
            options = await catalog.get_filter_options()
        except CatalogUnavailableError as e:
            return _unavailable(e)
        return {"success": True, "data": options.model_dump()}

    if details:
        if not ref:
            return JSONResponse({"success": False, "error": ERROR_MISSING_REF}, status_code=400)
        try:
            product_details = await catalog.get_product_details(ref)
        except CatalogUnavailableError as e:
            return _unavailable(e)
        if product_details is None:
            return JSONResponse({"success": False, "error": ERROR_PRODUCT_NOT_FOUND}, status_code=404)
        return {"success": True, "data": product_details.model_dump()}

    query = CatalogFilters(
        search=search, line=line, product_type=product_type, skin_type=skin_type, type=type
    )
    try:
        result = await catalog.get_products(query, page=page, page_size=page_size)
    except CatalogUnavailableError as e:
        return _unavailable(e)

    return {
        "success": True,
        "data": {
            "products": [_product_to_api(p) for p in result.products],
            "pagination": {
                "page": result.page,
                "pageSize": result.page_size,
                "hasMore": result.has_more,
                "total": result.total,
            },
        },
    }


async def _run_write(operation, success_status: int = 200) -> JSONResponse:
    """Shared error mapping of the admin product routes."""
    try:
        row = await operation
    except ProductValidationError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)
    except ProductWriteDenied:
        return JSONResponse({"success": False, "error": ERROR_PRODUCT_WRITE_DENIED}, status_code=403)
    except Exception as e:
        logger.error(f"Product write error: {e}", exc_info=True)
        return JSONResponse({"success": False, "error": ERROR_PRODUCT_WRITE_FAILED}, status_code=500)

    if row is None:
        return JSONResponse({"success": False, "error": ERROR_PRODUCT_NOT_FOUND}, status_code=404)
    return JSONResponse({"success": True, "data": row}, status_code=success_status)


@router.post("/api/products", dependencies=[Depends(require_bearer_token)])
async def create_product(
    payload: dict[str, Any] = Body(...),
    catalog: CatalogService = Depends(get_product_admin_service),
):
    """Create a product (admin only). Accepts UI or column field names."""
    return await _run_write(catalog.create_product(payload), success_status=201)


@router.put("/api/products", dependencies=[Depends(require_bearer_token)])
async def update_product(
    payload: dict[str, Any] = Body(...),
    catalog: CatalogService = Depends(get_product_admin_service),
):
    """Patch the product named by `ref` in the body (admin only)."""
    return await _run_write(catalog.update_product(payload))


@router.delete("/api/products", dependencies=[Depends(require_bearer_token)])
async def delete_product(
    ref: Optional[str] = None,
    catalog: CatalogService = Depends(get_product_admin_service),
):
    """Delete the product named by `?ref=` (admin only)."""
    return await _run_write(catalog.delete_product(ref or ""))
