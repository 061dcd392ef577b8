"""
Store contracts.

Defines the request/response shapes of the store backend, e.g.:
- catalog records (virtual items, groups, currencies, currency packages)
- user snapshots (inventory, virtual currency balance)
- the cart and its line items
- payment token / order / purchase responses

Both the store controller and the fake backend used by tests rely on these
models, so payloads are never assembled as ad-hoc dicts in two places.
"""

from __future__ import annotations

from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .interfaces import OrderStatus


class StoreModel(BaseModel):
    # Prices arrive as strings ("1.99") or bare numbers depending on the endpoint.
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

class Price(StoreModel):
    amount: str = ""
    amount_without_discount: str = ""
    currency: str = ""


class VirtualPrice(StoreModel):
    sku: str
    name: Optional[str] = None
    type: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    amount: int = 0
    amount_without_discount: int = 0
    is_default: bool = False


class ItemGroupRef(StoreModel):
    external_id: str
    name: Optional[str] = None


class ItemGroup(StoreModel):
    id: int = 0
    external_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    level: int = 0
    order: int = 0
    parent_external_id: Optional[str] = None
    children: List["ItemGroup"] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class StoreItem(StoreModel):
    sku: str
    name: Optional[str] = None
    description: Optional[str] = None
    type: str = ""
    virtual_item_type: str = ""
    image_url: Optional[str] = None
    is_free: bool = False
    price: Optional[Price] = None
    virtual_prices: List[VirtualPrice] = Field(default_factory=list)
    groups: List[ItemGroupRef] = Field(default_factory=list)


class VirtualItemsResponse(StoreModel):
    items: List[StoreItem]


class ItemGroupsResponse(StoreModel):
    groups: List[ItemGroup]


class StoreItemsData(StoreModel):
    """Cached catalog: items, the group tree and the set of group ids used by items."""
    items: List[StoreItem] = Field(default_factory=list)
    groups: List[ItemGroup] = Field(default_factory=list)
    group_ids: Set[str] = Field(default_factory=set)


class VirtualCurrency(StoreModel):
    sku: str
    name: Optional[str] = None
    description: Optional[str] = None
    type: str = ""
    image_url: Optional[str] = None
    is_free: bool = False
    price: Optional[Price] = None
    virtual_prices: List[VirtualPrice] = Field(default_factory=list)
    groups: List[ItemGroupRef] = Field(default_factory=list)


class VirtualCurrencyData(StoreModel):
    items: List[VirtualCurrency]


class PackageContent(StoreModel):
    sku: str
    name: Optional[str] = None
    type: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int = 0


class VirtualCurrencyPackage(StoreModel):
    sku: str
    name: Optional[str] = None
    description: Optional[str] = None
    type: str = ""
    bundle_type: str = ""
    image_url: Optional[str] = None
    is_free: bool = False
    price: Optional[Price] = None
    virtual_prices: List[VirtualPrice] = Field(default_factory=list)
    groups: List[ItemGroupRef] = Field(default_factory=list)
    content: List[PackageContent] = Field(default_factory=list)


class VirtualCurrencyPackagesData(StoreModel):
    items: List[VirtualCurrencyPackage]


# ---------------------------------------------------------------------------
# User snapshots
# ---------------------------------------------------------------------------

class InventoryItem(StoreModel):
    sku: str
    name: Optional[str] = None
    description: Optional[str] = None
    type: str = ""
    virtual_item_type: str = ""
    image_url: Optional[str] = None
    groups: List[ItemGroupRef] = Field(default_factory=list)
    quantity: int = 0
    remaining_uses: int = 0
    instance_id: Optional[str] = None


class Inventory(StoreModel):
    items: List[InventoryItem]


class VirtualCurrencyBalance(StoreModel):
    sku: str
    type: str = ""
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    amount: int = 0


class VirtualCurrencyBalanceData(StoreModel):
    items: List[VirtualCurrencyBalance]


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

class CartItem(StoreModel):
    sku: str
    name: Optional[str] = None
    type: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int = 0
    is_free: bool = False
    price: Optional[Price] = None
    groups: List[ItemGroupRef] = Field(default_factory=list)

    @classmethod
    def from_store_item(cls, item: StoreItem, quantity: int) -> "CartItem":
        return cls(
            sku=item.sku,
            name=item.name,
            type=item.type,
            description=item.description,
            image_url=item.image_url,
            quantity=max(0, quantity),
            is_free=item.is_free,
            price=item.price.model_copy() if item.price else None,
            groups=[g.model_copy() for g in item.groups],
        )

    @classmethod
    def from_currency_package(cls, package: VirtualCurrencyPackage, quantity: int) -> "CartItem":
        return cls(
            sku=package.sku,
            name=package.name,
            type=package.type,
            description=package.description,
            image_url=package.image_url,
            quantity=max(0, quantity),
            is_free=package.is_free,
            price=package.price.model_copy() if package.price else None,
            groups=[g.model_copy() for g in package.groups],
        )


class Cart(StoreModel):
    cart_id: int = 0
    price: Optional[Price] = None
    is_free: bool = False
    items: List[CartItem] = Field(default_factory=list)


class CreatedCart(StoreModel):
    id: int


# ---------------------------------------------------------------------------
# Payments and orders
# ---------------------------------------------------------------------------

class PaymentTokenRequest(StoreModel):
    """Body of the payment token calls. Empty locale/country/currency are left out."""
    currency: Optional[str] = None
    country: Optional[str] = None
    locale: Optional[str] = None
    sandbox: bool = False

    @field_validator("currency", "country", "locale", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class PaymentToken(StoreModel):
    token: str
    order_id: int


class OrderInfo(StoreModel):
    order_id: int
    status: str


class OrderStatusReport(StoreModel):
    order_id: int
    status: OrderStatus


class PurchaseReceipt(StoreModel):
    order_id: int


class CartItemQuantity(StoreModel):
    quantity: int


class ConsumeItemRequest(StoreModel):
    """Consume body. A zero quantity or empty instance id is sent as an explicit null."""
    sku: str
    quantity: Optional[int] = None
    instance_id: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def _zero_to_none(cls, value):
        return None if value == 0 else value

    @field_validator("instance_id", mode="before")
    @classmethod
    def _empty_to_none(cls, value):
        return None if value == "" else value


class SavedCart(StoreModel):
    cart_id: int = 0
    cart_currency: str = "USD"
