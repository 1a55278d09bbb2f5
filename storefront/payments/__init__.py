"""Payments package: Hypay webhook processing."""
from .constants import EVENT_OUTCOMES, EventOutcome, OrderStatus, PaymentStatus, resolve_event
from .webhooks import PaymentWebhookService, compute_signature

__all__ = [
    "EVENT_OUTCOMES",
    "EventOutcome",
    "OrderStatus",
    "PaymentStatus",
    "resolve_event",
    "PaymentWebhookService",
    "compute_signature",
]
