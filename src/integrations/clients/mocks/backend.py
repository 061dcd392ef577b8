"""
Store/identity backend: MOCK.

⚠️  In-process fake for development and testing. It plugs into
    httpx.AsyncClient through httpx.MockTransport, so the SDK's real
    transport, builder and classifier code runs against it.

Features:
- Route table keyed by (method, path); each route serves a FIFO of canned
  responses and keeps repeating the last one
- Dispatch log in arrival order (what the backend actually received)
- Hold/release gates to keep a request in flight until the test lets it go
- Connection failure simulation
"""

import asyncio
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

RouteKey = Tuple[str, str]


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

MOCK_PROJECT_ID = "44056"
MOCK_CART_ID = 42

_MOCK_ITEMS: List[Dict[str, Any]] = [
    {
        "sku": "sku-1",
        "name": "Crystal sword",
        "type": "virtual_good",
        "virtual_item_type": "non_consumable",
        "is_free": False,
        "price": {"amount": "1.00", "amount_without_discount": "1.00", "currency": "USD"},
        "virtual_prices": [],
        "groups": [{"external_id": "weapons", "name": "Weapons"}],
    },
    {
        "sku": "sku-2",
        "name": "Healing potion",
        "type": "virtual_good",
        "virtual_item_type": "consumable",
        "is_free": False,
        "price": {"amount": "0.50", "amount_without_discount": "0.75", "currency": "USD"},
        "virtual_prices": [
            {"sku": "gold", "name": "Gold", "amount": 20, "amount_without_discount": 20, "is_default": True}
        ],
        "groups": [{"external_id": "potions", "name": "Potions"}],
    },
    {
        "sku": "sku-3",
        "name": "Starter badge",
        "type": "virtual_good",
        "virtual_item_type": "non_consumable",
        "is_free": True,
        "price": None,
        "virtual_prices": [],
        "groups": [],
    },
]

_MOCK_GROUPS: List[Dict[str, Any]] = [
    {"id": 1, "external_id": "weapons", "name": "Weapons", "level": 1, "order": 1, "children": []},
    {"id": 2, "external_id": "potions", "name": "Potions", "level": 1, "order": 2, "children": []},
]

_MOCK_CURRENCIES: List[Dict[str, Any]] = [
    {"sku": "gold", "name": "Gold", "type": "virtual_currency", "is_free": False,
     "price": {"amount": "0.10", "amount_without_discount": "0.10", "currency": "USD"}},
]

_MOCK_PACKAGES: List[Dict[str, Any]] = [
    {
        "sku": "gold-100",
        "name": "100 Gold",
        "type": "bundle",
        "bundle_type": "virtual_currency_package",
        "is_free": False,
        "price": {"amount": "9.99", "amount_without_discount": "9.99", "currency": "USD"},
        "content": [{"sku": "gold", "name": "Gold", "type": "virtual_currency", "quantity": 100}],
    },
]

_MOCK_INVENTORY: List[Dict[str, Any]] = [
    {"sku": "sku-2", "name": "Healing potion", "type": "virtual_good", "quantity": 3, "remaining_uses": 0,
     "instance_id": None},
]

_MOCK_BALANCE: List[Dict[str, Any]] = [
    {"sku": "gold", "name": "Gold", "type": "virtual_currency", "amount": 250},
]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@dataclass
class CannedResponse:
    status_code: int = 200
    body: Optional[str] = None
    connection_error: bool = False


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: Dict[str, str]
    headers: Dict[str, str]
    body: str

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


@dataclass
class _Route:
    responses: Deque[CannedResponse] = field(default_factory=deque)

    def next(self) -> CannedResponse:
        if len(self.responses) > 1:
            return self.responses.popleft()
        return self.responses[0]


class FakeStoreBackend:
    """Fake store/identity backend served through httpx.MockTransport."""

    def __init__(self, project_id: str = MOCK_PROJECT_ID, api_prefix: str = "/api"):
        self.project_id = project_id
        self.api_prefix = api_prefix.rstrip("/")
        self.routes: Dict[RouteKey, _Route] = {}
        self.dispatched: List[RecordedRequest] = []
        self._gates: Dict[RouteKey, asyncio.Event] = {}
        self._arrived: Dict[RouteKey, asyncio.Event] = {}

    # --- Wiring --------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())

    def store_path(self, version: str, path: str) -> str:
        return f"{self.api_prefix}/{version}/project/{self.project_id}/{path.lstrip('/')}"

    # --- Route table ---------------------------------------------------------

    def route(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        connection_error: bool = False,
    ) -> "FakeStoreBackend":
        """Queue a canned response for (method, path). Path excludes the query string."""
        body = text if text is not None else (json.dumps(json_body) if json_body is not None else "")
        key = (method.upper(), path)
        self.routes.setdefault(key, _Route()).responses.append(
            CannedResponse(status_code=status_code, body=body, connection_error=connection_error)
        )
        return self

    def reset_route(self, method: str, path: str) -> None:
        self.routes.pop((method.upper(), path), None)

    def seed_store(self) -> "FakeStoreBackend":
        """Install realistic catalog, user and cart responses for the configured project."""
        p = self.store_path
        self.route("GET", p("v2", "items/virtual_items"), json_body={"items": _MOCK_ITEMS})
        self.route("GET", p("v1", "items/groups"), json_body={"groups": _MOCK_GROUPS})
        self.route("GET", p("v2", "items/virtual_currency"), json_body={"items": _MOCK_CURRENCIES})
        self.route("GET", p("v2", "items/virtual_currency/package"), json_body={"items": _MOCK_PACKAGES})
        self.route("GET", p("v2", "user/inventory/items"), json_body={"items": _MOCK_INVENTORY})
        self.route("GET", p("v2", "user/virtual_currency_balance"), json_body={"items": _MOCK_BALANCE})
        self.route("POST", p("v1", "cart"), json_body={"id": MOCK_CART_ID})
        self.route("GET", p("v1", f"cart/{MOCK_CART_ID}"), json_body={"cart_id": MOCK_CART_ID, "items": []})
        self.route("PUT", p("v1", f"cart/{MOCK_CART_ID}/clear"), status_code=204)
        return self

    # --- Gates ---------------------------------------------------------------

    def hold(self, method: str, path: str) -> None:
        """Keep matching requests in flight until release() is called."""
        key = (method.upper(), path)
        self._gates[key] = asyncio.Event()
        self._arrived[key] = asyncio.Event()

    def release(self, method: str, path: str) -> None:
        key = (method.upper(), path)
        gate = self._gates.pop(key, None)
        if gate is not None:
            gate.set()

    async def wait_for_arrival(self, method: str, path: str) -> None:
        await self._arrived[(method.upper(), path)].wait()

    # --- Dispatch log --------------------------------------------------------

    def dispatched_keys(self) -> List[RouteKey]:
        return [(r.method, r.path) for r in self.dispatched]

    def requests_to(self, method: str, path: str) -> List[RecordedRequest]:
        return [r for r in self.dispatched if r.method == method.upper() and r.path == path]

    # --- Handler -------------------------------------------------------------

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        body = request.content.decode("utf-8") if request.content else ""
        self.dispatched.append(
            RecordedRequest(
                method=request.method,
                path=request.url.path,
                query=dict(request.url.params),
                headers=dict(request.headers),
                body=body,
            )
        )
        logger.debug("Fake backend received %s %s", request.method, request.url)

        arrived = self._arrived.get(key)
        if arrived is not None:
            arrived.set()
        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()

        route = self.routes.get(key)
        if route is None or not route.responses:
            logger.warning("No fake route for %s %s", request.method, request.url.path)
            error = {"statusCode": 404, "errorCode": 0, "errorMessage": f"No route for {request.url.path}"}
            return httpx.Response(404, text=json.dumps(error), request=request)

        canned = route.next()
        if canned.connection_error:
            raise httpx.ConnectError("Fake backend unreachable", request=request)
        return httpx.Response(canned.status_code, text=canned.body or "", request=request)
