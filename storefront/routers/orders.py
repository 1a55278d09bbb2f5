"""
Orders API Router

Runs with the caller's identity, so row-level security on `orders` decides
what each caller may read or change. Submitting an order is open to anonymous
customers; reading and updating orders needs a bearer token.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.errors import (
    ERROR_ORDER_NOT_FOUND,
    ERROR_ORDER_REQUIRED_FIELDS,
    OrderNotFoundError,
    OrderValidationError,
)
from storefront.logging import get_logger
from storefront.models import Order, OrderCreate, OrderUpdate
from storefront.money import to_float
from storefront.orders import OrderService
from storefront.routers.deps import get_order_service, require_bearer_token

logger = get_logger(__name__)

router = APIRouter(tags=["orders"])


class OrderRequest(BaseModel):
    client_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    items: Optional[list[dict[str, Any]]] = None
    total_amount: Optional[float] = None
    status: Optional[str] = None
    notes: Optional[str] = None


def _order_to_api(order: Order) -> dict:
    data = order.model_dump(mode="json")
    data["total_amount"] = to_float(order.total_amount)
    return data


@router.get("/api/orders", dependencies=[Depends(require_bearer_token)])
async def list_orders(orders: OrderService = Depends(get_order_service)):
    """All orders, newest first."""
    result = await orders.list_orders()
    return {"success": True, "data": [_order_to_api(o) for o in result]}


@router.post("/api/orders")
async def create_order(request: OrderRequest, orders: OrderService = Depends(get_order_service)):
    if not request.customer_name or not request.total_amount or not request.items:
        logger.warning("Order rejected: missing required fields")
        return JSONResponse({"success": False, "error": ERROR_ORDER_REQUIRED_FIELDS}, status_code=400)

    payload = OrderCreate(
        client_id=request.client_id,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        customer_phone=request.customer_phone,
        items=request.items,
        total_amount=request.total_amount,
        status=request.status or "pending",
        notes=request.notes,
    )
    try:
        order = await orders.create_order(payload)
    except OrderValidationError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=400)

    return JSONResponse({"success": True, "data": _order_to_api(order)}, status_code=201)


@router.get("/api/orders/{order_id}", dependencies=[Depends(require_bearer_token)])
async def get_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    order = await orders.get_order(order_id)
    if order is None:
        return JSONResponse({"success": False, "error": ERROR_ORDER_NOT_FOUND}, status_code=404)
    return {"success": True, "data": _order_to_api(order)}


@router.put("/api/orders/{order_id}", dependencies=[Depends(require_bearer_token)])
async def update_order(
    order_id: str,
    patch: OrderUpdate,
    orders: OrderService = Depends(get_order_service),
):
    try:
        order = await orders.update_order(order_id, patch)
    except OrderNotFoundError as e:
        return JSONResponse({"success": False, "error": str(e)}, status_code=404)
    return {"success": True, "data": _order_to_api(order)}
