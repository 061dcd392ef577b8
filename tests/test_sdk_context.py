import pytest

from src.database.saves_file import JsonFileSaveStore
from src.integrations.clients.mocks.backend import FakeStoreBackend
from src.sdk_context import StoreSDK


@pytest.mark.asyncio
async def test_context_wires_builders_and_keeps_injected_client_open(config, saves):
    backend = FakeStoreBackend().seed_store()
    client = backend.client()

    async with StoreSDK(config, client=client, saves=saves) as sdk:
        sdk.initialize()
        assert sdk.store_builder.sdk == "store"
        assert sdk.login_builder.sdk == "login"
        assert sdk.store.project_id == config.project_id
        result = await sdk.store.update_virtual_items()
        assert result.ok

    assert not client.is_closed
    await client.aclose()

    request = backend.dispatched[0]
    assert request.headers["x-sdk"] == "STORE"
    assert request.headers["x-engine"] == "PYTHON"
    assert request.query["engine_v"] == config.engine_version


@pytest.mark.asyncio
async def test_project_override_changes_store_paths(config, saves):
    backend = FakeStoreBackend(project_id="777").seed_store()
    client = backend.client()

    async with StoreSDK(config, client=client, saves=saves) as sdk:
        sdk.initialize(project_id="777")
        result = await sdk.store.update_virtual_items()

    await client.aclose()
    assert result.ok
    assert backend.dispatched_keys() == [("GET", "/api/v2/project/777/items/virtual_items")]


@pytest.mark.asyncio
async def test_owned_client_is_closed(config):
    sdk = StoreSDK(config)
    await sdk.aclose()

    assert sdk.transport.client.is_closed


@pytest.mark.asyncio
async def test_initialize_ignores_saves_with_wrong_shape(config, tmp_path, caplog):
    saves = JsonFileSaveStore(tmp_path)
    (tmp_path / "store.json").write_text('{"cart_id": "not-a-number", "cart_currency": "EUR"}', encoding="utf-8")
    (tmp_path / "login.json").write_text('{"auth_token": "jwt", "remember_me": true}', encoding="utf-8")
    client = FakeStoreBackend().seed_store().client()

    async with StoreSDK(config, client=client, saves=saves) as sdk:
        with caplog.at_level("WARNING"):
            sdk.initialize()

        assert sdk.store.get_cart().cart_id == 0
        assert sdk.store.cart.cart_currency == "USD"
        assert sdk.login.get_login_data().auth_token.jwt == ""

    await client.aclose()
    assert "Ignoring unreadable cart save" in caplog.text
    assert "Ignoring unreadable login save" in caplog.text
