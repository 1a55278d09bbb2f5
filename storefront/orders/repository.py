"""Order Repository - `orders` table operations."""
from datetime import datetime, timezone
from typing import Any, Optional

from storefront.db import Tables
from storefront.models import Order, OrderCreate, OrderUpdate
from storefront.money import to_float
from storefront.repositories import BaseRepository


class OrderRepository(BaseRepository):
    """Order database operations."""

    async def create(self, order: OrderCreate) -> Order:
        """Insert a new order and return the stored row."""
        data = order.model_dump(exclude_none=True)
        data["total_amount"] = to_float(order.total_amount)
        result = await self.client.table(Tables.ORDERS).insert(data).execute()
        return Order(**result.data[0])

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self.client.table(Tables.ORDERS).select("*").eq("id", order_id).execute()
        return Order(**result.data[0]) if result.data else None

    async def list_recent(self, limit: int = 100) -> list[Order]:
        """Orders newest first."""
        result = await (
            self.client.table(Tables.ORDERS)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [Order(**row) for row in result.data or []]

    async def update(self, order_id: str, patch: OrderUpdate) -> Optional[Order]:
        """Apply a partial update; returns None when no order matched."""
        data: dict[str, Any] = patch.model_dump(exclude_none=True)
        if patch.total_amount is not None:
            data["total_amount"] = to_float(patch.total_amount)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()

        result = await self.client.table(Tables.ORDERS).update(data).eq("id", order_id).execute()
        return Order(**result.data[0]) if result.data else None

    async def update_by_payment_session(self, session_id: str, data: dict[str, Any]) -> int:
        """Patch every order bound to a payment session; returns rows updated."""
        data = {**data, "updated_at": datetime.now(timezone.utc).isoformat()}
        result = await (
            self.client.table(Tables.ORDERS)
            .update(data)
            .eq("payment_session_id", session_id)
            .execute()
        )
        return len(result.data or [])
