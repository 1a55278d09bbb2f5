"""Storefront models - Pydantic models for catalog, pricing and orders."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront import config
from storefront.money import non_negative, to_decimal as _to_decimal

# Canonical field -> historical names seen in product rows, cart records and UI payloads.
# The first alias present wins, the canonical name itself is checked first.
PRODUCT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("product_name", "productName", "hebrew_name"),
    "name_en": ("english_name", "product_name_2", "productName2"),
    "short_description": ("short_description_he",),
    "main_pic": ("mainPic",),
    "product_line": ("productLine", "line"),
    "product_type": ("productType",),
    "skin_type": ("skin_type_he",),
}


def normalize_product_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Map every known alias onto its canonical product field."""
    normalized = dict(data)
    for canonical, aliases in PRODUCT_FIELD_ALIASES.items():
        if normalized.get(canonical) not in (None, ""):
            continue
        for alias in aliases:
            value = data.get(alias)
            if value not in (None, ""):
                normalized[canonical] = value
                break
        if normalized.get(canonical) is None:
            normalized.pop(canonical, None)
    return normalized


class PriceInfo(BaseModel):
    """Price row for one product, visible only to entitled roles."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    unit_price: Decimal = Field(alias="unitPrice")
    currency: str = config.DEFAULT_CURRENCY
    discount_price: Optional[Decimal] = Field(default=None, alias="discountPrice")
    price_tier: str = Field(default=config.DEFAULT_PRICE_TIER, alias="priceTier")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("unit_price", mode="before")
    @classmethod
    def convert_unit_price(cls, v):
        return non_negative(v)

    @field_validator("discount_price", mode="before")
    @classmethod
    def convert_discount_price(cls, v):
        # 0 / empty means "no discount", as stored by the admin form
        if v in (None, "", 0, "0"):
            return None
        return non_negative(v)

    @field_validator("currency", "price_tier", mode="before")
    @classmethod
    def default_blank_strings(cls, v, info):
        if v in (None, ""):
            return config.DEFAULT_CURRENCY if info.field_name == "currency" else config.DEFAULT_PRICE_TIER
        return v

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PriceInfo":
        """Build from a `prices` table row."""
        return cls(
            unit_price=row.get("unit_price"),
            currency=row.get("currency"),
            discount_price=row.get("discount_price"),
            price_tier=row.get("price_tier"),
            updated_at=row.get("updated_at"),
        )

    @property
    def effective_price(self) -> Decimal:
        """Discount price when it undercuts the unit price."""
        if self.discount_price is not None and self.discount_price < self.unit_price:
            return self.discount_price
        return self.unit_price

    def to_api(self) -> dict[str, Any]:
        """Camel-case shape served by the prices endpoint."""
        return {
            "unitPrice": float(self.unit_price),
            "currency": self.currency,
            "discountPrice": float(self.discount_price) if self.discount_price is not None else None,
            "priceTier": self.price_tier,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class Product(BaseModel):
    """Catalog product, normalized from any historical row shape."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    ref: str = ""
    name: str = ""
    name_en: str = ""
    short_description: Optional[str] = None
    main_pic: Optional[str] = None
    size: Optional[str] = None
    product_line: Optional[str] = None
    type: Optional[str] = None
    product_type: Optional[str] = None
    skin_type: Optional[str] = None
    qty: Optional[int] = None
    price: Optional[PriceInfo] = None

    @model_validator(mode="before")
    @classmethod
    def apply_aliases(cls, data):
        if isinstance(data, dict):
            data = normalize_product_fields(data)
            if data.get("product_type") in (None, "") and data.get("type"):
                data["product_type"] = data["type"]
        return data

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return None if v in (None, "") else str(v)

    @field_validator("ref", mode="before")
    @classmethod
    def stringify_ref(cls, v):
        return "" if v is None else str(v)

    @field_validator("qty", mode="before")
    @classmethod
    def parse_qty(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return None

    @property
    def product_id(self) -> str:
        """Stable id used as the cart key."""
        return self.id or self.ref

    @property
    def in_stock(self) -> bool:
        return bool(self.qty and self.qty > 0)

    @property
    def unit_price(self) -> Optional[Decimal]:
        """Known unit price, None when prices are not shown."""
        return self.price.unit_price if self.price else None


class ProductDetails(BaseModel):
    """Long-form product content loaded on demand."""

    model_config = ConfigDict(extra="ignore")

    ref: str
    description: Optional[str] = None
    active_ingredients: Optional[str] = None
    usage_instructions: Optional[str] = None
    ingredients: Optional[str] = None
    header: Optional[str] = None
    french_name: Optional[str] = None
    pics: list[str] = []

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ProductDetails":
        pics = row.get("pics")
        return cls(
            ref=str(row.get("ref", "")),
            description=row.get("description_he"),
            active_ingredients=row.get("active_ingredients_he"),
            usage_instructions=row.get("usage_instructions_he"),
            ingredients=row.get("ingredients"),
            header=row.get("header"),
            french_name=row.get("french_name"),
            pics=pics if isinstance(pics, list) else [],
        )


# `products` column -> admin payload keys, first non-empty key wins
PRODUCT_WRITE_FIELDS: dict[str, tuple[str, ...]] = {
    "hebrew_name": ("productName", "hebrew_name"),
    "english_name": ("productName2", "english_name"),
    "description_he": ("description", "description_he"),
    "active_ingredients_he": ("activeIngredients", "active_ingredients_he"),
    "usage_instructions_he": ("usageInstructions", "usage_instructions_he"),
    "main_pic": ("mainPic", "main_pic"),
    "size": ("size",),
    "notice": ("notice",),
    "product_type": ("productType", "product_type"),
    "short_description_he": ("short_description_he",),
    "skin_type_he": ("skin_type_he", "line"),
    "header": ("header",),
    "ingredients": ("ingredients",),
    "french_name": ("frenchName", "french_name"),
    "product_line": ("productLine", "product_line", "line"),
    "type": ("type", "productType"),
}


def product_row_from_payload(payload: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """
    `products` row for an admin create/update payload.

    `pics` may be a list or a " | " separated string. Stock comes from
    `stockQuantity` or `qty` whenever either key is present, so 0 and null
    can be written. A full row (create) defaults `product_type` to "Product",
    `pics` to [] and `qty` to null; a partial row (update) carries only what
    the payload sets. `ref` is never part of the row.
    """
    row: dict[str, Any] = {}
    for column, keys in PRODUCT_WRITE_FIELDS.items():
        value = next((payload[key] for key in keys if payload.get(key) not in (None, "")), None)
        if value is not None:
            row[column] = value

    pics = payload.get("pics")
    if isinstance(pics, list):
        row["pics"] = pics
    elif isinstance(pics, str):
        row["pics"] = [pic.strip() for pic in pics.split(" | ") if pic.strip()]

    for key in ("stockQuantity", "qty"):
        if key in payload:
            row["qty"] = payload[key]
            break

    if not partial:
        row.setdefault("product_type", "Product")
        row.setdefault("pics", [])
        row.setdefault("qty", None)
    return row


class CatalogFilters(BaseModel):
    """Filter selections applied to a catalog query."""

    search: str = ""
    line: str = ""
    product_type: str = ""
    skin_type: str = ""
    type: str = ""


class ProductPage(BaseModel):
    """One page of catalog results."""

    products: list[Product]
    page: int
    page_size: int
    has_more: bool
    total: int


class FilterOptions(BaseModel):
    """Distinct values available to the catalog filter panel."""

    lines: list[str] = []
    product_types: list[str] = []
    skin_types: list[str] = []
    types: list[str] = []


class OrderCreate(BaseModel):
    """Order submission payload."""

    client_id: Optional[str] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    items: list[dict[str, Any]]
    total_amount: Decimal
    status: str = "pending"
    notes: Optional[str] = None

    @field_validator("total_amount", mode="before")
    @classmethod
    def convert_total(cls, v):
        return _to_decimal(v)


class OrderUpdate(BaseModel):
    """Partial order patch; unset fields are left untouched."""

    status: Optional[str] = None
    payment_status: Optional[str] = None
    items: Optional[list[dict[str, Any]]] = None
    total_amount: Optional[Decimal] = None
    notes: Optional[str] = None

    @field_validator("total_amount", mode="before")
    @classmethod
    def convert_total(cls, v):
        return _to_decimal(v) if v is not None else None


class Order(BaseModel):
    """Persisted order row."""

    model_config = ConfigDict(extra="ignore")

    id: str
    client_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    items: list[dict[str, Any]] = []
    total_amount: Decimal = Decimal("0")
    status: str = "pending"
    payment_status: Optional[str] = None
    payment_session_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v)

    @field_validator("total_amount", mode="before")
    @classmethod
    def convert_total(cls, v):
        return _to_decimal(v)
