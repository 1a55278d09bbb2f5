"""
Pricing Gate

Decides whether the current user may see prices and fetches them only then.

State machine (per session):

    unknown -> checking -> granted | denied

The outcome of a check is cached for PRICE_ACCESS_TTL_SECONDS; after that the
gate reads as `unknown` again and the next `ensure_access()` re-checks. While
the gate is not `granted`, price fetches are skipped at the source and callers
treat a missing price as "not shown", never as zero.
"""
import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from storefront import config
from storefront.errors import PriceAccessDenied
from storefront.logging import get_logger
from storefront.models import PriceInfo
from storefront.money import format_money
from .repository import PriceRepository

logger = get_logger(__name__)

# Profile roles entitled to prices
PRICING_ROLES = frozenset({"admin", "verified_member"})


class AccessState(str, Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class PriceDisplay:
    """Formatted price for display."""
    display: str
    original: Optional[str]
    is_discounted: bool
    currency: str


class PricingGate:
    """Per-session pricing access and price cache."""

    def __init__(
        self,
        repo: PriceRepository,
        ttl_seconds: float = config.PRICE_ACCESS_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repo = repo
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._state = AccessState.UNKNOWN
        self._decided_at: Optional[float] = None
        self._inflight: Optional[asyncio.Task] = None
        self.prices: dict[str, PriceInfo] = {}

    # ==================== STATE ====================

    @property
    def state(self) -> AccessState:
        if self._state in (AccessState.GRANTED, AccessState.DENIED) and self._is_stale():
            return AccessState.UNKNOWN
        return self._state

    @property
    def can_view_prices(self) -> bool:
        return self.state is AccessState.GRANTED

    def _is_stale(self) -> bool:
        return self._decided_at is None or self._clock() - self._decided_at >= self.ttl_seconds

    def _transition(self, new_state: AccessState, reason: str = "") -> None:
        if new_state is not self._state:
            logger.info(f"Pricing access {self._state.value} -> {new_state.value} {reason}".rstrip())
        self._state = new_state
        if new_state in (AccessState.GRANTED, AccessState.DENIED):
            self._decided_at = self._clock()
        if new_state is not AccessState.GRANTED:
            self.prices.clear()

    def invalidate(self) -> None:
        """Forget the cached decision, e.g. after sign-in or sign-out."""
        self._state = AccessState.UNKNOWN
        self._decided_at = None
        self.prices.clear()

    # ==================== ACCESS CHECK ====================

    async def ensure_access(self) -> bool:
        """Use the cached decision, checking only when unknown or expired."""
        state = self.state
        if state in (AccessState.GRANTED, AccessState.DENIED):
            return state is AccessState.GRANTED
        return await self.check_access()

    async def check_access(self) -> bool:
        """Ask the backend now. Concurrent callers share one request."""
        if self._inflight is None:
            self._inflight = asyncio.get_running_loop().create_task(self._run_check())
        task = self._inflight
        return await asyncio.shield(task)

    async def _run_check(self) -> bool:
        self._transition(AccessState.CHECKING)
        try:
            await self.repo.check_access()
        except PriceAccessDenied:
            self._transition(AccessState.DENIED, "(role not entitled)")
        except Exception as e:
            # Anything but an explicit success means no access for this window
            logger.warning(f"Price access check failed: {e}")
            self._transition(AccessState.DENIED, "(check failed)")
        else:
            self._transition(AccessState.GRANTED)
        finally:
            self._inflight = None
        return self._state is AccessState.GRANTED

    # ==================== PRICES ====================

    async def load_prices(self, product_refs: Union[str, Iterable[str]]) -> dict[str, PriceInfo]:
        """
        Fetch prices for the given refs.

        Without granted access no request is made and {} is returned. Fetch
        errors also resolve to {} so the catalog renders without prices.
        """
        if self.state is not AccessState.GRANTED:
            logger.debug("Pricing access not granted - skipping price load")
            return {}

        if isinstance(product_refs, str):
            product_refs = [product_refs]
        refs = list(dict.fromkeys(ref for ref in product_refs if ref))
        if not refs:
            return {}

        try:
            prices = await self.repo.get_prices(refs)
        except PriceAccessDenied:
            self._transition(AccessState.DENIED, "(rejected during price load)")
            return {}
        except Exception as e:
            logger.error(f"Error loading prices for {len(refs)} products: {e}")
            return {}

        self.prices.update(prices)
        return prices

    def get_product_price(self, product_ref: str) -> Optional[PriceInfo]:
        if not self.can_view_prices:
            return None
        return self.prices.get(product_ref)

    def format_price(self, product_ref: str, show_discount: bool = True) -> Optional[PriceDisplay]:
        """Display strings for a cached price; None when no price is shown."""
        price = self.get_product_price(product_ref)
        if price is None:
            return None

        if show_discount and price.effective_price < price.unit_price:
            return PriceDisplay(
                display=format_money(price.effective_price, price.currency),
                original=format_money(price.unit_price, price.currency),
                is_discounted=True,
                currency=price.currency,
            )
        return PriceDisplay(
            display=format_money(price.unit_price, price.currency),
            original=None,
            is_discounted=False,
            currency=price.currency,
        )

    def price_placeholder(self) -> Optional[str]:
        """Text for a product without a shown price."""
        return "Price not available" if self.can_view_prices else None

    def get_user_pricing_info(self, user_role: Optional[str] = None, user_id: Optional[str] = None) -> dict:
        """Summary of the user's pricing entitlement."""
        can_view = self.can_view_prices
        tier = None
        if can_view:
            tier = user_role if role_can_view_prices(user_role) else "verified_member"
        return {
            "can_view_prices": can_view,
            "state": self.state.value,
            "role": "authenticated" if user_id else "anonymous",
            "tier": tier,
            "user_id": user_id,
        }


def role_can_view_prices(user_role: Optional[str]) -> bool:
    """Whether a profile role is entitled to prices."""
    return (user_role or "") in PRICING_ROLES
