"""
Hypay webhook handling.

Each event moves the payment session to a new status and mirrors it onto the
orders bound to that session. Backend errors are not caught here: the HTTP
layer answers 500 so the gateway retries delivery.
"""
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Any, Optional

from storefront import config
from storefront.db import Tables
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.orders import OrderRepository
from storefront.repositories import BaseRepository
from .constants import EVENT_ALIASES, EventOutcome, PaymentStatus, resolve_event

logger = get_logger(__name__)


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _session_fields(status: PaymentStatus, payload: dict[str, Any]) -> dict[str, Any]:
    if status is PaymentStatus.CREATED:
        return {"payment_url": payload.get("payment_url")}
    if status is PaymentStatus.COMPLETED:
        return {
            "transaction_id": payload.get("transaction_id"),
            "payment_method": payload.get("payment_method"),
        }
    if status is PaymentStatus.FAILED:
        return {"error_message": payload.get("error_message") or payload.get("decline_reason")}
    return {}


def _order_fields(status: PaymentStatus, payload: dict[str, Any]) -> dict[str, Any]:
    if status is PaymentStatus.COMPLETED:
        return {"transaction_id": payload.get("transaction_id"), "confirmed_at": _now()}
    if status is PaymentStatus.FAILED:
        return {"payment_error": payload.get("error_message") or payload.get("decline_reason")}
    if status is PaymentStatus.CANCELLED:
        return {"cancelled_at": _now()}
    if status is PaymentStatus.REFUNDED:
        return {
            "refund_amount": payload.get("refund_amount"),
            "refund_reason": payload.get("refund_reason"),
            "refunded_at": _now(),
        }
    return {}


class PaymentWebhookService(BaseRepository):
    """Applies Hypay webhook events to `payment_sessions` and `orders`."""

    def __init__(self, client, secret: Optional[str] = None):
        super().__init__(client)
        self.secret = config.HYPAY_SECRET_KEY if secret is None else secret
        self.orders = OrderRepository(client)

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        if not self.secret:
            logger.warning("HYPAY_SECRET_KEY not set - skipping webhook signature verification")
            return True
        if not signature:
            return False
        expected = compute_signature(raw_body, self.secret)
        return hmac.compare_digest(expected, signature.strip().lower())

    async def handle(self, payload: dict[str, Any]) -> Optional[EventOutcome]:
        """
        Apply one webhook payload.

        Returns the applied outcome, or None for unknown events (which are
        acknowledged without changes).
        """
        event_type = payload.get("event_type")
        outcome = resolve_event(event_type)
        session_id = payload.get("session_id")
        if outcome is None:
            logger.warning(f"Unknown webhook event type: {sanitize_id_for_logging(event_type)}")
            return None
        if not session_id:
            logger.warning(f"Webhook {event_type} without session_id ignored")
            return None

        canonical = EVENT_ALIASES.get(event_type, event_type)
        logger.info(f"Hypay {canonical} for session {sanitize_id_for_logging(session_id)}")

        session_update = {
            "status": outcome.session_status.value,
            "updated_at": _now(),
            **_session_fields(outcome.session_status, payload),
        }
        await (
            self.client.table(Tables.PAYMENT_SESSIONS)
            .update(session_update)
            .eq("session_id", session_id)
            .execute()
        )

        if outcome.order_status is not None:
            await self.update_order_status(
                session_id,
                outcome.order_status.value,
                outcome.payment_status.value,
                _order_fields(outcome.session_status, payload),
            )
        return outcome

    async def update_order_status(
        self,
        session_id: str,
        order_status: str,
        payment_status: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> int:
        data = {
            "status": order_status,
            "payment_status": payment_status,
            "payment_session_id": session_id,
            **(extra or {}),
        }
        updated = await self.orders.update_by_payment_session(session_id, data)
        logger.info(
            f"Orders for session {sanitize_id_for_logging(session_id)}: "
            f"{order_status}/{payment_status} ({updated} rows)"
        )
        return updated

    async def cleanup_expired_sessions(self) -> Any:
        """Expire stale sessions via the backend function (cron)."""
        result = await self.client.rpc("cleanup_expired_payment_sessions").execute()
        logger.info(f"Cleaned up expired payment sessions: {result.data}")
        return result.data
