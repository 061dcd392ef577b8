#!/usr/bin/env python3
"""
Run a catalog → cart → payment flow against the in-process fake backend and
print each stage to the terminal.
Shows the catalog, the optimistic cart, the server-confirmed cart and the
payment page URL.

Usage (from repo root):
  python scripts/run_store_demo.py
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.integrations.clients.mocks.backend import MOCK_CART_ID, MOCK_PROJECT_ID, FakeStoreBackend
from src.sdk_context import StoreSDK
from src.utils.config_loader import load_sdk_config

DEMO_TOKEN = "demo-token"


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data: dict | list | str):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


async def main():
    setup_logging()
    config = load_sdk_config(use_defaults_if_missing=True)
    config.project_id = MOCK_PROJECT_ID
    config.use_platform_browser = False

    backend = FakeStoreBackend().seed_store()
    p = backend.store_path
    backend.route("PUT", p("v1", f"cart/{MOCK_CART_ID}/item/sku-1"), status_code=204)
    backend.route("PUT", p("v1", f"cart/{MOCK_CART_ID}/item/gold-100"), status_code=204)
    backend.route("POST", p("v1", f"payment/cart/{MOCK_CART_ID}"), json_body={"token": "demo-paystation-token", "order_id": 1001})

    client = backend.client()
    async with StoreSDK(config, client=client) as sdk:
        sdk.initialize()
        sdk.store.add_cart_listener(
            lambda cart: print_stage("CART UPDATE EVENT", cart.model_dump(exclude_none=True))
        )

        # --- Catalog ---
        items, packages = await asyncio.gather(
            sdk.store.update_virtual_items(),
            sdk.store.update_virtual_currency_packages(),
        )
        print_stage("CATALOG: virtual items", [i.sku for i in items.value.items])
        print_stage("CATALOG: currency packages", [pkg.sku for pkg in packages.value])

        # --- Cart ---
        await sdk.store.create_cart(DEMO_TOKEN)
        sdk.store.add_to_cart(DEMO_TOKEN, "sku-1", 2)
        sdk.store.add_to_cart(DEMO_TOKEN, "gold-100", 1)
        print_stage("QUEUED CART REQUESTS", [e.operation.value for e in sdk.store.cart.pending])
        await sdk.store.cart.wait_until_idle()

        # --- Payment ---
        token = await sdk.store.fetch_cart_payment_token(DEMO_TOKEN, currency="USD")
        if not token.ok:
            print_stage("PAYMENT TOKEN FAILED", token.error.message)
            return
        url = sdk.store.launch_payment_console(token.value.token, opener=lambda u: None)
        print_stage("PAYMENT PAGE", url)
        print_stage("BACKEND DISPATCH LOG", [f"{m} {path}" for m, path in backend.dispatched_keys()])

    await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
