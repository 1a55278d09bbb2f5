"""Fills cart line prices from the pricing gate."""
from storefront.cart import CartManager
from storefront.logging import get_logger
from .gate import PricingGate

logger = get_logger(__name__)


class PriceLoader:
    """
    Loads prices for cart refs that have not been priced yet.

    Refs are remembered once priced so repeated refreshes only fetch new
    lines. Nothing is loaded in edit mode, where manual price changes must
    not be overwritten.
    """

    def __init__(self, gate: PricingGate):
        self.gate = gate
        self._loaded_refs: set[str] = set()

    async def refresh(self, manager: CartManager, edit_mode: bool = False) -> int:
        """Price new cart lines; returns how many lines were updated."""
        if edit_mode:
            return 0

        cart = manager.cart
        if cart.is_empty:
            self._loaded_refs.clear()
            return 0

        refs = list(dict.fromkeys(item.product_ref for item in cart.items if item.product_ref))
        new_refs = [ref for ref in refs if ref not in self._loaded_refs]
        if not new_refs:
            return 0

        if not await self.gate.ensure_access():
            return 0

        prices = await self.gate.load_prices(new_refs)
        if not prices:
            return 0

        updated = 0
        for item in cart.items:
            price = prices.get(item.product_ref)
            if price is None:
                continue
            await manager.update_item_price(item.product_id, price.unit_price)
            self._loaded_refs.add(item.product_ref)
            updated += 1

        logger.info(f"Priced {updated} cart lines")
        return updated

    def reset(self) -> None:
        self._loaded_refs.clear()
