"""Pytest fixtures for store, cart and login tests."""

import base64
import json

import pytest
import pytest_asyncio

from src.database.saves import InMemorySaveStore
from src.integrations.clients.mocks.backend import MOCK_PROJECT_ID, FakeStoreBackend
from src.sdk_context import StoreSDK
from src.utils.config_loader import SDKConfig

LOGIN_PROJECT_ID = "026201e3-7e40-11ea-a85b-42010aa80004"


def make_token(payload: dict) -> str:
    """Unsigned three-segment token carrying ``payload``."""

    def segment(data: dict) -> str:
        raw = json.dumps(data).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(payload)}.signature"


@pytest.fixture
def config():
    return SDKConfig(
        project_id=MOCK_PROJECT_ID,
        login_project_id=LOGIN_PROJECT_ID,
        token_validation_url="https://verify.example.test/verify",
        callback_url="https://game.example.test/callback",
        account_linking_url="https://linking.example.test/link",
        platform_authentication_url="https://linking.example.test/auth",
        use_platform_browser=False,
        engine_version="3.12.0",
    )


@pytest.fixture
def backend():
    """Fake backend seeded with a small catalog and cart 42."""
    return FakeStoreBackend().seed_store()


@pytest.fixture
def saves():
    return InMemorySaveStore()


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def user_token():
    return make_token({"sub": "user-1", "provider": "xsolla", "is_master": True})


@pytest_asyncio.fixture
async def sdk(config, backend, saves):
    client = backend.client()
    store_sdk = StoreSDK(config, client=client, saves=saves)
    store_sdk.initialize()
    yield store_sdk
    await store_sdk.aclose()
    await client.aclose()
