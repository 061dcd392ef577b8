"""
SDK context.

Owns everything the store and login subsystems share for one host session:
- configuration
- one httpx.AsyncClient (through HttpTransport)
- request builders for the store and login backends
- the persistence collaborator

Usage:

    async with StoreSDK(load_sdk_config()) as sdk:
        sdk.initialize()
        await sdk.store.update_virtual_items()
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from src.database.saves import InMemorySaveStore
from src.error_handler import ErrorHandler
from src.integrations.clients.real_http.request_builder import RequestBuilder
from src.integrations.clients.real_http.transport import HttpTransport
from src.integrations.contracts.interfaces import SaveStore
from src.login.client import LoginClient
from src.store.controller import StoreController
from src.utils.config_loader import SDKConfig

logger = logging.getLogger(__name__)

STORE_SDK_NAME = "store"
LOGIN_SDK_NAME = "login"


class StoreSDK:
    def __init__(
        self,
        config: SDKConfig,
        client: Optional[httpx.AsyncClient] = None,
        saves: Optional[SaveStore] = None,
    ) -> None:
        self.config = config
        self.transport = HttpTransport(client, timeout_seconds=config.timeout_seconds)
        self.saves = saves or InMemorySaveStore()
        self.errors = ErrorHandler()

        self.store_builder = self._builder(STORE_SDK_NAME)
        self.login_builder = self._builder(LOGIN_SDK_NAME)

        self.login = LoginClient(config, self.login_builder, self.saves, self.errors)
        self.store = StoreController(config, self.store_builder, self.saves, self.errors)

    def _builder(self, sdk_name: str) -> RequestBuilder:
        return RequestBuilder(
            self.transport,
            sdk=sdk_name,
            sdk_version=self.config.sdk_version,
            engine=self.config.engine,
            engine_version=self.config.engine_version,
        )

    def initialize(self, project_id: Optional[str] = None, login_project_id: Optional[str] = None) -> None:
        """Restore saved login and cart state. Must run before the first cart call."""
        self.login.initialize(project_id, login_project_id)
        self.store.initialize(project_id)

    async def aclose(self) -> None:
        await self.store.cart.wait_until_idle()
        await self.transport.aclose()
        logger.info("Store SDK closed")

    async def __aenter__(self) -> "StoreSDK":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
