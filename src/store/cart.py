"""
Cart reconciliation.

Purpose:
- Keeps a local mirror of the server cart
- Applies add/remove/clear to the mirror immediately, before the server answers
- Sends every cart-mutating request through a single-flight FIFO queue so the
  server sees them in call order
- Reconciles with the server: create/refresh replace the mirror, a failed
  add/remove triggers a corrective refresh

Queue discipline:
- At most one queued request is PROCESSING at any time
- Finished requests are purged before deciding whether to start the head
- Every completion path ends by draining the queue (directly, or through the
  refresh it enqueues)

Callers run on one asyncio loop. Transport callbacks arrive on that same
loop, so the queue and the mirror need no lock.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import httpx

from src.error_handler import ErrorHandler
from src.integrations.clients.real_http.request_builder import RequestBuilder
from src.integrations.clients.real_http.transport import HttpRequest
from src.integrations.contracts.interfaces import (
    TERMINAL_REQUEST_STATUSES,
    RequestStatus,
    RequestVerb,
    Result,
    SaveStore,
)
from src.integrations.contracts.store import Cart, CartItem, CartItemQuantity, CreatedCart, SavedCart
from src.integrations.policy.codec import (
    IntegrationResponseError,
    SchemaMismatchError,
    build_model,
    decode_model,
    encode_model,
)
from src.integrations.policy.completion import Completion, ErrorCallback, SuccessCallback
from src.integrations.policy.response_classifier import classify_response
from src.store.catalog import CatalogCache
from src.store.endpoints import StoreEndpoints

logger = logging.getLogger(__name__)

SAVE_SLOT = "store"
DEFAULT_CART_CURRENCY = "USD"

CartListener = Callable[[Cart], None]


class CartOperation(str, Enum):
    CREATE = "create"
    CLEAR = "clear"
    REFRESH = "refresh"
    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"


@dataclass
class PendingCartRequest:
    operation: CartOperation
    request: HttpRequest
    completion: Completion


class CartReconciler:
    def __init__(
        self,
        builder: RequestBuilder,
        endpoints: StoreEndpoints,
        catalog: CatalogCache,
        saves: SaveStore,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.builder = builder
        self.endpoints = endpoints
        self.catalog = catalog
        self.saves = saves
        self.errors = error_handler or ErrorHandler()

        self.cart = Cart()
        self.cart_currency = DEFAULT_CART_CURRENCY
        self.auth_token = ""

        self._queue: List[PendingCartRequest] = []
        self._listeners: List[CartListener] = []

    # ------------------------------------------------------------------
    # State and observers
    # ------------------------------------------------------------------

    def get_cart(self) -> Cart:
        return self.cart.model_copy(deep=True)

    def add_listener(self, listener: CartListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: CartListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def broadcast(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.get_cart())
            except Exception as exc:
                self.errors.handle_callback_exception(exc, {"operation": "cart_update"})

    def load_saved(self) -> None:
        try:
            saved = build_model(SavedCart, self.saves.load(SAVE_SLOT) or {})
        except SchemaMismatchError as exc:
            logger.warning("Ignoring unreadable cart save: %s", exc)
            saved = SavedCart()
        self.cart_currency = saved.cart_currency
        self.cart.cart_id = saved.cart_id
        self.broadcast()

    def save(self) -> None:
        self.saves.save(SAVE_SLOT, SavedCart(cart_id=self.cart.cart_id, cart_currency=self.cart_currency).model_dump())

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    @property
    def pending(self) -> List[PendingCartRequest]:
        return list(self._queue)

    def process_next(self) -> None:
        self._queue = [entry for entry in self._queue if entry.request.status not in TERMINAL_REQUEST_STATUSES]

        in_flight = any(entry.request.status == RequestStatus.PROCESSING for entry in self._queue)
        if not in_flight and self._queue:
            head = self._queue[0]
            logger.debug("Starting cart request %s %s", head.operation.value, head.request.url)
            head.request.process()

    async def wait_until_idle(self) -> None:
        """Wait until every queued cart request, including resyncs, has finished."""
        while True:
            self.process_next()
            if not self._queue:
                return
            await self._queue[0].request.wait()
            # Let follow-up requests queued by the completion handler get scheduled.
            await asyncio.sleep(0)

    def _enqueue(self, operation: CartOperation, request: HttpRequest, completion: Completion) -> None:
        self._queue.append(PendingCartRequest(operation, request, completion))
        self.process_next()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_cart(
        self,
        auth_token: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[Cart]]":
        self.auth_token = auth_token
        completion = Completion(on_success, on_error, self.errors, name=CartOperation.CREATE.value)

        request = self.builder.build(self.endpoints.create_cart(), RequestVerb.POST, auth_token)
        request.on_complete(lambda req, resp, ok: self._on_create_complete(completion, resp, ok))
        self._enqueue(CartOperation.CREATE, request, completion)
        return completion.future

    def clear_cart(
        self,
        auth_token: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[Cart]]":
        self.auth_token = auth_token
        completion = Completion(on_success, on_error, self.errors, name=CartOperation.CLEAR.value)

        request = self.builder.build(self.endpoints.clear_cart(self.cart.cart_id), RequestVerb.PUT, auth_token)
        request.on_complete(lambda req, resp, ok: self._on_clear_complete(completion, resp, ok))
        self._enqueue(CartOperation.CLEAR, request, completion)

        self.cart.items.clear()
        self.broadcast()
        return completion.future

    def update_cart(
        self,
        auth_token: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[Cart]]":
        self.auth_token = auth_token
        completion = Completion(on_success, on_error, self.errors, name=CartOperation.REFRESH.value)
        self._enqueue_refresh(auth_token, completion)
        return completion.future

    def add_to_cart(
        self,
        auth_token: str,
        item_sku: str,
        quantity: int,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[Cart]]":
        self.auth_token = auth_token
        completion = Completion(on_success, on_error, self.errors, name=CartOperation.ADD_ITEM.value)

        body = encode_model(CartItemQuantity(quantity=quantity))
        url = self.endpoints.cart_item(self.cart.cart_id, item_sku)
        request = self.builder.build(url, RequestVerb.PUT, auth_token, body)
        request.on_complete(lambda req, resp, ok: self._on_item_mutation_complete(completion, resp, ok))
        self._enqueue(CartOperation.ADD_ITEM, request, completion)

        self._apply_add(item_sku, quantity)
        self.broadcast()
        return completion.future

    def remove_from_cart(
        self,
        auth_token: str,
        item_sku: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "asyncio.Future[Result[Cart]]":
        self.auth_token = auth_token
        completion = Completion(on_success, on_error, self.errors, name=CartOperation.REMOVE_ITEM.value)

        url = self.endpoints.cart_item(self.cart.cart_id, item_sku)
        request = self.builder.build(url, RequestVerb.DELETE, auth_token)
        request.on_complete(lambda req, resp, ok: self._on_item_mutation_complete(completion, resp, ok))
        self._enqueue(CartOperation.REMOVE_ITEM, request, completion)

        self._apply_remove(item_sku)
        self.broadcast()
        return completion.future

    def _enqueue_refresh(self, auth_token: str, completion: Completion) -> None:
        request = self.builder.build(self.endpoints.cart(self.cart.cart_id), RequestVerb.GET, auth_token)
        request.on_complete(lambda req, resp, ok: self._on_refresh_complete(completion, resp, ok))
        self._enqueue(CartOperation.REFRESH, request, completion)

    # ------------------------------------------------------------------
    # Optimistic mutations
    # ------------------------------------------------------------------

    def _apply_add(self, item_sku: str, quantity: int) -> None:
        existing = next((item for item in self.cart.items if item.sku == item_sku), None)
        if existing is not None:
            existing.quantity = max(0, quantity)
            return

        store_item = self.catalog.find_item(item_sku)
        if store_item is not None:
            self.cart.items.append(CartItem.from_store_item(store_item, quantity))
            return

        package = self.catalog.find_currency_package(item_sku)
        if package is not None:
            self.cart.items.append(CartItem.from_currency_package(package, quantity))
            return

        logger.error("Can't find provided SKU in local cache: %s", item_sku)

    def _apply_remove(self, item_sku: str) -> None:
        for index, item in enumerate(self.cart.items):
            if item.sku == item_sku:
                del self.cart.items[index]
                return

    # ------------------------------------------------------------------
    # Completion handlers
    # ------------------------------------------------------------------

    def _on_create_complete(self, completion: Completion, response: Optional[httpx.Response], succeeded: bool) -> None:
        try:
            error = classify_response(response, succeeded)
            if error is not None:
                completion.fail(error)
                return

            logger.debug("Create cart response: %s", response.text)
            try:
                created = decode_model(response.text, CreatedCart)
            except IntegrationResponseError as exc:
                completion.fail(self.errors.to_record(exc, response.status_code, {"operation": "create_cart"}))
                return

            self.cart = Cart(cart_id=created.id)
            self.save()
            self.broadcast()
            completion.succeed(self.get_cart())
        finally:
            self.process_next()

    def _on_clear_complete(self, completion: Completion, response: Optional[httpx.Response], succeeded: bool) -> None:
        try:
            error = classify_response(response, succeeded)
            if error is not None:
                completion.fail(error)
                return

            logger.debug("Clear cart response: %s", response.text)
            completion.succeed(self.get_cart())
        finally:
            self.process_next()

    def _on_refresh_complete(self, completion: Completion, response: Optional[httpx.Response], succeeded: bool) -> None:
        try:
            error = classify_response(response, succeeded)
            if error is not None:
                completion.fail(error)
                return

            logger.debug("Cart response: %s", response.text)
            try:
                cart = decode_model(response.text, Cart)
            except IntegrationResponseError as exc:
                completion.fail(self.errors.to_record(exc, response.status_code, {"operation": "update_cart"}))
                return

            self.cart = cart
            self.broadcast()
            completion.succeed(self.get_cart())
        finally:
            self.process_next()

    def _on_item_mutation_complete(self, completion: Completion, response: Optional[httpx.Response], succeeded: bool) -> None:
        error = classify_response(response, succeeded)
        if error is not None:
            completion.fail(error)
            # Pull the authoritative cart instead of rolling the mirror back locally.
            self._enqueue_refresh(self.auth_token, completion.derive(CartOperation.REFRESH.value))
            return

        logger.debug("Cart item response: %s", response.text)
        completion.succeed(self.get_cart())
        self.process_next()
