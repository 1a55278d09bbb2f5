"""Pricing package: RLS-gated price access."""
from .repository import PriceRepository
from .gate import AccessState, PriceDisplay, PricingGate, role_can_view_prices
from .loader import PriceLoader

__all__ = [
    "PriceRepository",
    "AccessState",
    "PriceDisplay",
    "PricingGate",
    "role_can_view_prices",
    "PriceLoader",
]
