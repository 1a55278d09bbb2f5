"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from storefront.models import Product, normalize_product_fields
from storefront.money import non_negative, round_money, multiply


@dataclass(frozen=True)
class ProductSnapshot:
    """Product fields embedded in a cart line for display without re-fetching."""
    id: str = ""
    ref: str = ""
    name: str = ""
    main_pic: str = ""
    product_type: str = ""

    @classmethod
    def from_product(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=product.id or "",
            ref=product.ref,
            name=product.name,
            main_pic=product.main_pic or "",
            product_type=product.product_type or "",
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ProductSnapshot":
        data = normalize_product_fields(data)
        return cls(
            id=str(data.get("id") or ""),
            ref=str(data.get("ref") or ""),
            name=str(data.get("name") or ""),
            main_pic=str(data.get("main_pic") or ""),
            product_type=str(data.get("product_type") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ref": self.ref,
            "product_name": self.name,
            "main_pic": self.main_pic,
            "product_type": self.product_type,
        }


@dataclass(frozen=True)
class CartItem:
    """Single line in the cart. Quantity is always >= 1."""
    product_id: str
    quantity: int
    unit_price: Decimal = Decimal("0")
    product_name: str = ""
    unit_type: str = ""
    notes: str = ""
    product: Optional[ProductSnapshot] = None

    @property
    def total_price(self) -> Decimal:
        """Line total for all units."""
        return round_money(multiply(self.unit_price, self.quantity))

    @property
    def product_ref(self) -> str:
        """Catalog reference used for price lookups."""
        if self.product and self.product.ref:
            return self.product.ref
        return self.product_id

    def to_dict(self) -> dict:
        """Storage form of the line."""
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "total_price": str(self.total_price),
            "unit_type": self.unit_type,
            "notes": self.notes,
            "product": self.product.to_dict() if self.product else None,
        }


def _parse_quantity(value: Any) -> int:
    try:
        return max(1, int(float(str(value))))
    except (TypeError, ValueError, OverflowError):
        return 1


def sanitize_cart_item(item: dict) -> CartItem:
    """
    Build a CartItem from a possibly stale or hand-edited record.

    Accepts legacy field names, coerces quantity to >= 1 and price to a
    non-negative number. A record without any product id yields an item with
    an empty product_id, which callers drop.
    """
    product = item.get("product")
    unit_price = item.get("unit_price")
    if unit_price in (None, ""):
        unit_price = item.get("unitPrice")
    return CartItem(
        product_id=str(item.get("product_id") or item.get("ref") or ""),
        product_name=str(item.get("product_name") or item.get("productName") or ""),
        quantity=_parse_quantity(item.get("quantity")),
        unit_price=non_negative(unit_price),
        unit_type=str(item.get("unit_type") or ""),
        notes=str(item.get("notes") or item.get("notice") or ""),
        product=ProductSnapshot.from_dict(product) if isinstance(product, dict) else None,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Cart:
    """
    Shopping cart. Immutable: every mutation builds a new Cart.

    Totals are derived from the items on each read.
    """
    items: tuple[CartItem, ...] = ()
    last_updated: datetime = field(default_factory=_utcnow)

    @property
    def subtotal(self) -> Decimal:
        return sum((multiply(item.unit_price, item.quantity) for item in self.items), Decimal("0"))

    @property
    def total(self) -> Decimal:
        # Tax and shipping would be composed here
        return self.subtotal

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def with_items(self, items: list[CartItem] | tuple[CartItem, ...]) -> "Cart":
        """New cart holding the given items, stamped now."""
        return replace(self, items=tuple(items), last_updated=_utcnow())
