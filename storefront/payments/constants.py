"""Payment constants, enums, and event mapping."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PaymentStatus(str, Enum):
    """
    Payment session lifecycle.

    Flow:
        created -> processing -> completed -> refunded
                              -> failed
                              -> cancelled
                              -> expired
    """
    CREATED = "created"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    EXPIRED = "expired"


class OrderStatus(str, Enum):
    """Order statuses written by payment events."""
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    PAYMENT_FAILED = "payment_failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PAYMENT_EXPIRED = "payment_expired"


@dataclass(frozen=True)
class EventOutcome:
    """Statuses a webhook event writes. Order fields are None when the order is untouched."""
    session_status: PaymentStatus
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


EVENT_OUTCOMES: dict[str, EventOutcome] = {
    "payment.created": EventOutcome(PaymentStatus.CREATED),
    "payment.processing": EventOutcome(
        PaymentStatus.PROCESSING, OrderStatus.PROCESSING, PaymentStatus.PROCESSING
    ),
    "payment.completed": EventOutcome(
        PaymentStatus.COMPLETED, OrderStatus.CONFIRMED, PaymentStatus.COMPLETED
    ),
    "payment.failed": EventOutcome(
        PaymentStatus.FAILED, OrderStatus.PAYMENT_FAILED, PaymentStatus.FAILED
    ),
    "payment.cancelled": EventOutcome(
        PaymentStatus.CANCELLED, OrderStatus.CANCELLED, PaymentStatus.CANCELLED
    ),
    "payment.refunded": EventOutcome(
        PaymentStatus.REFUNDED, OrderStatus.REFUNDED, PaymentStatus.REFUNDED
    ),
    "payment.expired": EventOutcome(
        PaymentStatus.EXPIRED, OrderStatus.PAYMENT_EXPIRED, PaymentStatus.EXPIRED
    ),
}

# Gateway event aliases (input -> canonical)
EVENT_ALIASES: dict[str, str] = {
    "payment.success": "payment.completed",
    "payment.declined": "payment.failed",
}


def resolve_event(event_type: Optional[str]) -> Optional[EventOutcome]:
    """Outcome for an event type, or None when the event is unknown."""
    if not event_type:
        return None
    event_type = EVENT_ALIASES.get(event_type, event_type)
    return EVENT_OUTCOMES.get(event_type)
