"""
Store controller.

Purpose:
- Refreshes the catalog/user caches from the store backend
- Creates payment tokens and opens the hosted payment page
- Checks orders, consumes inventory and buys items for virtual currency
- Exposes the cart engine under the same surface

Every response is classified before its body is decoded. Catalog slots are
only replaced by a successful, fully decoded response, and requests outside
the cart queue run independently of each other.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Any, Callable, List, Optional, Type
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from src.error_handler import ErrorHandler
from src.integrations.clients.real_http.request_builder import RequestBuilder
from src.integrations.contracts.interfaces import ErrorRecord, OrderStatus, RequestVerb, Result, SaveStore
from src.integrations.contracts.store import (
    Cart,
    ConsumeItemRequest,
    Inventory,
    InventoryItem,
    ItemGroup,
    ItemGroupsResponse,
    OrderInfo,
    OrderStatusReport,
    PaymentToken,
    PaymentTokenRequest,
    PurchaseReceipt,
    StoreItem,
    StoreItemsData,
    VirtualCurrency,
    VirtualCurrencyBalance,
    VirtualCurrencyBalanceData,
    VirtualCurrencyData,
    VirtualCurrencyPackage,
    VirtualCurrencyPackagesData,
    VirtualItemsResponse,
)
from src.integrations.policy.codec import decode_model, encode_model
from src.integrations.policy.completion import Completion, ErrorCallback, SuccessCallback
from src.integrations.policy.dispatch import dispatch
from src.login.token import TokenDecodeError, get_steam_user_id
from src.store.cart import CartListener, CartReconciler
from src.store.catalog import CatalogCache
from src.store.endpoints import StoreEndpoints
from src.utils.config_loader import SDKConfig

logger = logging.getLogger(__name__)

DEFAULT_GROUPS_LOCALE = "en"
STEAM_USER_ID_HEADER = "x-steam-userid"

KNOWN_ORDER_STATUSES = {
    "new": OrderStatus.NEW,
    "paid": OrderStatus.PAID,
    "done": OrderStatus.DONE,
}

UrlOpener = Callable[[str], Any]


class StoreController:
    def __init__(
        self,
        config: SDKConfig,
        builder: RequestBuilder,
        saves: SaveStore,
        error_handler: Optional[ErrorHandler] = None,
        catalog: Optional[CatalogCache] = None,
    ) -> None:
        self.config = config
        self.builder = builder
        self.errors = error_handler or ErrorHandler()
        self.catalog = catalog or CatalogCache()
        self.endpoints = StoreEndpoints(config.store_api_url, config.project_id)
        self.cart = CartReconciler(builder, self.endpoints, self.catalog, saves, self.errors)
        self.pending_paystation_url = ""

    def initialize(self, project_id: Optional[str] = None) -> None:
        """Apply a project id override and restore the saved cart id and currency."""
        if project_id:
            self.endpoints.project_id = project_id
        self.cart.load_saved()
        logger.info("Store controller initialized for project %s", self.endpoints.project_id)

    @property
    def project_id(self) -> str:
        return self.endpoints.project_id

    # ------------------------------------------------------------------
    # Dispatch helpers
    # ------------------------------------------------------------------

    def _fetch(
        self,
        name: str,
        url: str,
        model_type: Type[BaseModel],
        apply: Callable[[Any], Any],
        auth_token: str = "",
        verb: RequestVerb = RequestVerb.GET,
        content: str = "",
        headers: Optional[dict] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[Any]]":
        """Dispatch one request, decode its body into ``model_type`` and succeed with ``apply(model)``."""
        completion = Completion(on_success, on_error, self.errors, name=name)

        def on_response(response: httpx.Response) -> None:
            model = decode_model(response.text, model_type)
            completion.succeed(apply(model))

        dispatch(
            self.builder,
            url,
            verb,
            completion,
            on_response,
            auth_token=auth_token,
            content=content,
            headers=headers,
            error_handler=self.errors,
        )
        return completion.future

    def _fail_now(self, name: str, error: ErrorRecord, on_error: Optional[ErrorCallback]) -> "asyncio.Future[Result[Any]]":
        completion = Completion(None, on_error, self.errors, name=name)
        completion.fail(error)
        return completion.future

    # ------------------------------------------------------------------
    # Catalog and user state
    # ------------------------------------------------------------------

    def update_virtual_items(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[StoreItemsData]]":
        return self._fetch(
            "update_virtual_items",
            self.endpoints.virtual_items(),
            VirtualItemsResponse,
            lambda data: self.catalog.replace_items(data.items),
            on_success=on_success,
            on_error=on_error,
        )

    def update_item_groups(
        self,
        locale: str = DEFAULT_GROUPS_LOCALE,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[List[ItemGroup]]]":
        return self._fetch(
            "update_item_groups",
            self.endpoints.item_groups(locale or DEFAULT_GROUPS_LOCALE),
            ItemGroupsResponse,
            lambda data: self.catalog.replace_groups(data.groups),
            on_success=on_success,
            on_error=on_error,
        )

    def update_inventory(
        self,
        auth_token: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[List[InventoryItem]]]":
        return self._fetch(
            "update_inventory",
            self.endpoints.inventory(),
            Inventory,
            self.catalog.replace_inventory,
            auth_token=auth_token,
            on_success=on_success,
            on_error=on_error,
        )

    def update_virtual_currencies(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[List[VirtualCurrency]]]":
        return self._fetch(
            "update_virtual_currencies",
            self.endpoints.virtual_currencies(),
            VirtualCurrencyData,
            lambda data: self.catalog.replace_virtual_currencies(data.items),
            on_success=on_success,
            on_error=on_error,
        )

    def update_virtual_currency_packages(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[List[VirtualCurrencyPackage]]]":
        return self._fetch(
            "update_virtual_currency_packages",
            self.endpoints.virtual_currency_packages(),
            VirtualCurrencyPackagesData,
            lambda data: self.catalog.replace_currency_packages(data.items),
            on_success=on_success,
            on_error=on_error,
        )

    def update_virtual_currency_balance(
        self,
        auth_token: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[List[VirtualCurrencyBalance]]]":
        return self._fetch(
            "update_virtual_currency_balance",
            self.endpoints.currency_balance(),
            VirtualCurrencyBalanceData,
            lambda data: self.catalog.replace_balance(data.items),
            auth_token=auth_token,
            on_success=on_success,
            on_error=on_error,
        )

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def fetch_payment_token(
        self,
        auth_token: str,
        item_sku: str,
        currency: str = "",
        country: str = "",
        locale: str = "",
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[PaymentToken]]":
        return self._fetch_token(
            "fetch_payment_token",
            self.endpoints.item_payment(item_sku),
            auth_token,
            currency,
            country,
            locale,
            on_success,
            on_error,
        )

    def fetch_cart_payment_token(
        self,
        auth_token: str,
        currency: str = "",
        country: str = "",
        locale: str = "",
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[PaymentToken]]":
        return self._fetch_token(
            "fetch_cart_payment_token",
            self.endpoints.cart_payment(self.cart.cart.cart_id),
            auth_token,
            currency,
            country,
            locale,
            on_success,
            on_error,
        )

    def _fetch_token(
        self,
        name: str,
        url: str,
        auth_token: str,
        currency: str,
        country: str,
        locale: str,
        on_success: Optional[SuccessCallback],
        on_error: Optional[ErrorCallback],
    ) -> "asyncio.Future[Result[PaymentToken]]":
        headers = {}
        if self.config.build_for_steam:
            try:
                headers[STEAM_USER_ID_HEADER] = get_steam_user_id(auth_token)
            except TokenDecodeError as exc:
                return self._fail_now(name, self.errors.to_record(exc, 0, {"operation": name}), on_error)

        body = PaymentTokenRequest(
            currency=currency,
            country=country,
            locale=locale,
            sandbox=self.config.is_sandbox_enabled(),
        )
        return self._fetch(
            name,
            url,
            PaymentToken,
            lambda token: token,
            auth_token=auth_token,
            verb=RequestVerb.POST,
            content=encode_model(body),
            headers=headers,
            on_success=on_success,
            on_error=on_error,
        )

    def paystation_url(self, access_token: str) -> str:
        base = self.config.sandbox_paystation_url if self.config.is_sandbox_enabled() else self.config.paystation_url
        return f"{base}?access_token={quote(access_token, safe='')}"

    def launch_payment_console(self, access_token: str, opener: Optional[UrlOpener] = None) -> str:
        """Record the hosted payment page URL and hand it to ``opener``.

        Without an opener the system browser is used when ``use_platform_browser``
        is set; otherwise the URL is only kept for the host to render.
        """
        url = self.paystation_url(access_token)
        self.pending_paystation_url = url

        if opener is not None:
            opener(url)
        elif self.config.use_platform_browser:
            webbrowser.open(url)
        else:
            logger.info("Payment page URL ready for host rendering: %s", url)
        return url

    def get_pending_paystation_url(self) -> str:
        return self.pending_paystation_url

    # ------------------------------------------------------------------
    # Orders and purchases
    # ------------------------------------------------------------------

    def check_order(
        self,
        auth_token: str,
        order_id: int,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[OrderStatusReport]]":
        return self._fetch(
            "check_order",
            self.endpoints.order(order_id),
            OrderInfo,
            self._order_report,
            auth_token=auth_token,
            on_success=on_success,
            on_error=on_error,
        )

    @staticmethod
    def _order_report(order: OrderInfo) -> OrderStatusReport:
        status = KNOWN_ORDER_STATUSES.get(order.status)
        if status is None:
            logger.warning("Unknown order status: %s [%d]", order.status, order.order_id)
            status = OrderStatus.UNKNOWN
        return OrderStatusReport(order_id=order.order_id, status=status)

    def consume_inventory_item(
        self,
        auth_token: str,
        item_sku: str,
        quantity: int = 0,
        instance_id: str = "",
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[None]]":
        completion = Completion(on_success, on_error, self.errors, name="consume_inventory_item")
        body = ConsumeItemRequest(sku=item_sku, quantity=quantity, instance_id=instance_id)
        dispatch(
            self.builder,
            self.endpoints.consume_item(),
            RequestVerb.POST,
            completion,
            lambda response: completion.succeed(None),
            auth_token=auth_token,
            content=encode_model(body, exclude_none=False),
            error_handler=self.errors,
        )
        return completion.future

    def get_virtual_currency(
        self,
        currency_sku: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[VirtualCurrency]]":
        return self._fetch(
            "get_virtual_currency",
            self.endpoints.virtual_currency(currency_sku),
            VirtualCurrency,
            lambda currency: currency,
            on_success=on_success,
            on_error=on_error,
        )

    def get_virtual_currency_package(
        self,
        package_sku: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[VirtualCurrencyPackage]]":
        return self._fetch(
            "get_virtual_currency_package",
            self.endpoints.virtual_currency_package(package_sku),
            VirtualCurrencyPackage,
            lambda package: package,
            on_success=on_success,
            on_error=on_error,
        )

    def buy_item_with_virtual_currency(
        self,
        auth_token: str,
        item_sku: str,
        currency_sku: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[int]]":
        return self._fetch(
            "buy_item_with_virtual_currency",
            self.endpoints.virtual_purchase(item_sku, currency_sku),
            PurchaseReceipt,
            lambda receipt: receipt.order_id,
            auth_token=auth_token,
            verb=RequestVerb.POST,
            on_success=on_success,
            on_error=on_error,
        )

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    def create_cart(self, auth_token: str, on_success=None, on_error=None) -> "asyncio.Future[Result[Cart]]":
        return self.cart.create_cart(auth_token, on_success, on_error)

    def clear_cart(self, auth_token: str, on_success=None, on_error=None) -> "asyncio.Future[Result[Cart]]":
        return self.cart.clear_cart(auth_token, on_success, on_error)

    def update_cart(self, auth_token: str, on_success=None, on_error=None) -> "asyncio.Future[Result[Cart]]":
        return self.cart.update_cart(auth_token, on_success, on_error)

    def add_to_cart(
        self, auth_token: str, item_sku: str, quantity: int, on_success=None, on_error=None
    ) -> "asyncio.Future[Result[Cart]]":
        return self.cart.add_to_cart(auth_token, item_sku, quantity, on_success, on_error)

    def remove_from_cart(
        self, auth_token: str, item_sku: str, on_success=None, on_error=None
    ) -> "asyncio.Future[Result[Cart]]":
        return self.cart.remove_from_cart(auth_token, item_sku, on_success, on_error)

    def add_cart_listener(self, listener: CartListener) -> None:
        self.cart.add_listener(listener)

    def remove_cart_listener(self, listener: CartListener) -> None:
        self.cart.remove_listener(listener)

    def get_cart(self) -> Cart:
        return self.cart.get_cart()

    # ------------------------------------------------------------------
    # Cached data
    # ------------------------------------------------------------------

    def get_virtual_items(self, group_filter: str = "") -> List[StoreItem]:
        return self.catalog.get_virtual_items(group_filter)

    def get_virtual_items_without_group(self) -> List[StoreItem]:
        return self.catalog.get_virtual_items_without_group()

    def get_items_data(self) -> StoreItemsData:
        return self.catalog.items_data

    def get_virtual_currency_data(self) -> List[VirtualCurrency]:
        return list(self.catalog.virtual_currencies)

    def get_virtual_currency_packages(self) -> List[VirtualCurrencyPackage]:
        return list(self.catalog.currency_packages)

    def get_virtual_currency_balance(self) -> List[VirtualCurrencyBalance]:
        return list(self.catalog.balance)

    def get_inventory(self) -> List[InventoryItem]:
        return list(self.catalog.inventory)
