import asyncio

import pytest

from src.integrations.contracts.interfaces import ErrorRecord, OrderStatus
from src.integrations.contracts.store import OrderStatusReport, PaymentToken
from src.integrations.policy.codec import SCHEMA_MISMATCH

TOKEN = "user-token"


# ---------------------------------------------------------------------------
# Catalog and user state
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_virtual_items_replaces_items_and_group_ids(sdk):
    result = await sdk.store.update_virtual_items()

    assert result.ok
    assert [item.sku for item in result.value.items] == ["sku-1", "sku-2", "sku-3"]
    assert result.value.group_ids == {"weapons", "potions"}
    assert [i.sku for i in sdk.store.get_virtual_items("weapons")] == ["sku-1"]
    assert [i.sku for i in sdk.store.get_virtual_items()] == ["sku-1", "sku-2", "sku-3"]
    assert [i.sku for i in sdk.store.get_virtual_items_without_group()] == ["sku-3"]


@pytest.mark.asyncio
async def test_update_item_groups_touches_only_groups(sdk, backend):
    await sdk.store.update_virtual_items()

    result = await sdk.store.update_item_groups()

    assert [g.external_id for g in result.value] == ["weapons", "potions"]
    assert len(sdk.store.get_items_data().items) == 3
    request = backend.requests_to("GET", backend.store_path("v1", "items/groups"))[0]
    assert request.query["locale"] == "en"


@pytest.mark.asyncio
async def test_failed_fetch_does_not_touch_cache(sdk, backend):
    await sdk.store.update_virtual_items()
    path = backend.store_path("v2", "items/virtual_items")
    backend.reset_route("GET", path)
    backend.route("GET", path, status_code=503, json_body={"statusCode": 503, "errorCode": 0, "errorMessage": "Maintenance"})

    result = await sdk.store.update_virtual_items()

    assert result.error == ErrorRecord(503, 0, "Maintenance")
    assert len(sdk.store.get_items_data().items) == 3


@pytest.mark.asyncio
async def test_schema_mismatch_is_reported_and_cache_kept(sdk, backend):
    path = backend.store_path("v2", "items/virtual_currency")
    backend.reset_route("GET", path)
    backend.route("GET", path, json_body={"currencies": []})

    errors = []
    result = await sdk.store.update_virtual_currencies(on_error=errors.append)

    assert result.error == ErrorRecord(200, 0, SCHEMA_MISMATCH)
    assert errors == [result.error]
    assert sdk.store.get_virtual_currency_data() == []


@pytest.mark.asyncio
async def test_independent_fetches_fill_their_own_slots(sdk):
    currencies, packages, balance = await asyncio.gather(
        sdk.store.update_virtual_currencies(),
        sdk.store.update_virtual_currency_packages(),
        sdk.store.update_virtual_currency_balance(TOKEN),
    )

    assert [c.sku for c in currencies.value] == ["gold"]
    assert [p.sku for p in packages.value] == ["gold-100"]
    assert packages.value[0].content[0].quantity == 100
    assert balance.value[0].amount == 250
    assert [c.sku for c in sdk.store.get_virtual_currency_data()] == ["gold"]
    assert [p.sku for p in sdk.store.get_virtual_currency_packages()] == ["gold-100"]
    assert [b.sku for b in sdk.store.get_virtual_currency_balance()] == ["gold"]


@pytest.mark.asyncio
async def test_update_inventory_sends_bearer_token(sdk, backend):
    successes = []
    result = await sdk.store.update_inventory(TOKEN, on_success=successes.append)

    assert [i.sku for i in result.value] == ["sku-2"]
    assert successes == [result.value]
    assert [i.quantity for i in sdk.store.get_inventory()] == [3]
    request = backend.requests_to("GET", backend.store_path("v2", "user/inventory/items"))[0]
    assert request.headers["authorization"] == f"Bearer {TOKEN}"
    assert request.query["sdk"] == "store"


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_payment_token_body_omits_empty_fields_and_sends_sandbox(sdk, backend):
    path = backend.store_path("v1", "payment/item/sku-1")
    backend.route("POST", path, json_body={"token": "pay-token", "order_id": 7})

    result = await sdk.store.fetch_payment_token(TOKEN, "sku-1")
    await sdk.store.fetch_payment_token(TOKEN, "sku-1", currency="EUR", locale="de")

    assert result.value == PaymentToken(token="pay-token", order_id=7)
    bodies = [r.json() for r in backend.requests_to("POST", path)]
    assert bodies == [{"sandbox": True}, {"currency": "EUR", "locale": "de", "sandbox": True}]
    assert backend.requests_to("POST", path)[0].headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_shipping_build_disables_sandbox_unless_enabled(sdk, backend, caplog):
    path = backend.store_path("v1", "payment/item/sku-1")
    backend.route("POST", path, json_body={"token": "pay-token", "order_id": 7})

    sdk.config.shipping_build = True
    await sdk.store.fetch_payment_token(TOKEN, "sku-1")

    sdk.config.enable_sandbox_in_shipping = True
    with caplog.at_level("WARNING"):
        await sdk.store.fetch_payment_token(TOKEN, "sku-1")

    assert [r.json()["sandbox"] for r in backend.requests_to("POST", path)] == [False, True]
    assert "Sandbox should be disabled in shipping build" in caplog.text


@pytest.mark.asyncio
async def test_cart_payment_token_targets_current_cart(sdk, backend):
    await sdk.store.create_cart(TOKEN)
    path = backend.store_path("v1", "payment/cart/42")
    backend.route("POST", path, json_body={"token": "cart-token", "order_id": 8})

    result = await sdk.store.fetch_cart_payment_token(TOKEN, country="US")

    assert result.value.order_id == 8
    assert backend.requests_to("POST", path)[0].json() == {"country": "US", "sandbox": True}


@pytest.mark.asyncio
async def test_steam_build_sends_steam_user_id_header(sdk, backend, token_factory):
    sdk.config.build_for_steam = True
    steam_token = token_factory({"sub": "u", "id": "https://steamcommunity.com/openid/id/76561198000000001"})
    path = backend.store_path("v1", "payment/item/sku-1")
    backend.route("POST", path, json_body={"token": "pay-token", "order_id": 7})

    result = await sdk.store.fetch_payment_token(steam_token, "sku-1")

    assert result.ok
    assert backend.requests_to("POST", path)[0].headers["x-steam-userid"] == "76561198000000001"


@pytest.mark.asyncio
async def test_steam_build_without_profile_claim_fails_before_dispatch(sdk, backend, token_factory):
    sdk.config.build_for_steam = True
    errors = []

    result = await sdk.store.fetch_payment_token(token_factory({"sub": "u"}), "sku-1", on_error=errors.append)

    assert result.error == ErrorRecord(0, 0, "Can't find Steam profile ID in token payload")
    assert errors == [result.error]
    assert backend.dispatched == []


@pytest.mark.asyncio
async def test_payment_console_url_follows_sandbox_flag(sdk):
    opened = []

    url = sdk.store.launch_payment_console("abc", opener=opened.append)

    assert url == "https://sandbox-secure.xsolla.com/paystation3?access_token=abc"
    assert opened == [url]
    assert sdk.store.get_pending_paystation_url() == url

    sdk.config.sandbox = False
    assert sdk.store.paystation_url("abc") == "https://secure.xsolla.com/paystation3?access_token=abc"


# ---------------------------------------------------------------------------
# Orders and purchases
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_order_status_maps_to_unknown_and_succeeds(sdk, backend, caplog):
    backend.route("GET", backend.store_path("v1", "order/7"), json_body={"order_id": 7, "status": "pending_review"})
    successes, errors = [], []

    with caplog.at_level("WARNING"):
        result = await sdk.store.check_order(TOKEN, 7, on_success=successes.append, on_error=errors.append)

    assert result.value == OrderStatusReport(order_id=7, status=OrderStatus.UNKNOWN)
    assert successes == [result.value]
    assert errors == []
    assert "pending_review" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize("status,expected", [("new", OrderStatus.NEW), ("paid", OrderStatus.PAID), ("done", OrderStatus.DONE)])
async def test_known_order_statuses(sdk, backend, status, expected):
    backend.route("GET", backend.store_path("v1", "order/9"), json_body={"order_id": "9", "status": status})

    result = await sdk.store.check_order(TOKEN, 9)

    assert result.value.order_id == 9
    assert result.value.status == expected


@pytest.mark.asyncio
async def test_consume_sends_explicit_nulls_for_defaults(sdk, backend):
    path = backend.store_path("v1", "user/inventory/item/consume")
    backend.route("POST", path, status_code=204)

    first = await sdk.store.consume_inventory_item(TOKEN, "sku-2")
    second = await sdk.store.consume_inventory_item(TOKEN, "sku-2", quantity=2, instance_id="inst-1")

    assert first.ok and first.value is None
    assert second.ok
    bodies = [r.json() for r in backend.requests_to("POST", path)]
    assert bodies == [
        {"sku": "sku-2", "quantity": None, "instance_id": None},
        {"sku": "sku-2", "quantity": 2, "instance_id": "inst-1"},
    ]


@pytest.mark.asyncio
async def test_buy_item_with_virtual_currency_returns_order_id(sdk, backend):
    path = backend.store_path("v2", "payment/item/sku-2/virtual/gold")
    backend.route("POST", path, json_body={"order_id": 99})

    result = await sdk.store.buy_item_with_virtual_currency(TOKEN, "sku-2", "gold")

    assert result.value == 99
    assert backend.requests_to("POST", path)[0].headers["authorization"] == f"Bearer {TOKEN}"


@pytest.mark.asyncio
async def test_get_virtual_currency_and_package(sdk, backend):
    backend.route("GET", backend.store_path("v2", "items/virtual_currency/sku/gold"), json_body={"sku": "gold", "name": "Gold"})
    backend.route(
        "GET",
        backend.store_path("v2", "items/virtual_currency/package/sku/gold-100"),
        json_body={"sku": "gold-100", "content": [{"sku": "gold", "quantity": 100}]},
    )

    currency = await sdk.store.get_virtual_currency("gold")
    package = await sdk.store.get_virtual_currency_package("gold-100")

    assert currency.value.name == "Gold"
    assert package.value.content[0].quantity == 100


@pytest.mark.asyncio
async def test_unrouted_call_reports_store_error_body(sdk):
    result = await sdk.store.get_virtual_currency("missing")

    assert result.error.status_code == 404
    assert result.error.message.startswith("No route for")
