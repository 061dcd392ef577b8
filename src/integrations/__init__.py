"""
Integrations layer.
This package contains all code used to talk to the store and identity backends:
- contracts: request/response models and the shared enums/records
- clients/real_http: the httpx transport and the request builder
- clients/mocks: an in-process fake backend for tests and local development
- policy: response classification, JSON codec, completion and dispatch

Key rule:
- Store and login flows MUST NOT build httpx requests directly.
- They go through RequestBuilder and hand every response to a classifier
  before decoding the body.

Switching implementations:
- The httpx client is injected in ONE place (src/sdk_context.py); tests pass a
  client bound to FakeStoreBackend instead of the network.
"""

from .contracts.interfaces import (
    ErrorRecord,
    OrderStatus,
    RequestStatus,
    RequestVerb,
    Result,
    SaveStore,
    TargetPlatform,
)
from .contracts.store import (
    Cart,
    CartItem,
    Inventory,
    InventoryItem,
    ItemGroup,
    OrderStatusReport,
    PaymentToken,
    StoreItem,
    StoreItemsData,
    VirtualCurrency,
    VirtualCurrencyBalance,
    VirtualCurrencyPackage,
)
from .contracts.login import AuthToken, LoginData, UserAttribute

__all__ = [
    # interfaces
    "ErrorRecord", "OrderStatus", "RequestStatus", "RequestVerb",
    "Result", "SaveStore", "TargetPlatform",
    # store
    "Cart", "CartItem", "Inventory", "InventoryItem", "ItemGroup",
    "OrderStatusReport", "PaymentToken", "StoreItem", "StoreItemsData",
    "VirtualCurrency", "VirtualCurrencyBalance", "VirtualCurrencyPackage",
    # login
    "AuthToken", "LoginData", "UserAttribute",
]
