"""Project-scoped store endpoint URLs."""

from __future__ import annotations

from urllib.parse import quote


class StoreEndpoints:
    def __init__(self, api_url: str, project_id: str = "") -> None:
        self.api_url = api_url.rstrip("/")
        self.project_id = project_id

    def url(self, version: str, path: str) -> str:
        return f"{self.api_url}/{version}/project/{quote(self.project_id, safe='')}/{path.lstrip('/')}"

    # --- Catalog ---------------------------------------------------------------

    def virtual_items(self) -> str:
        return self.url("v2", "items/virtual_items")

    def item_groups(self, locale: str) -> str:
        return self.url("v1", f"items/groups?locale={quote(locale, safe='')}")

    def virtual_currencies(self) -> str:
        return self.url("v2", "items/virtual_currency")

    def virtual_currency_packages(self) -> str:
        return self.url("v2", "items/virtual_currency/package")

    def virtual_currency(self, currency_sku: str) -> str:
        return self.url("v2", f"items/virtual_currency/sku/{quote(currency_sku, safe='')}")

    def virtual_currency_package(self, package_sku: str) -> str:
        return self.url("v2", f"items/virtual_currency/package/sku/{quote(package_sku, safe='')}")

    # --- User ----------------------------------------------------------------

    def inventory(self) -> str:
        return self.url("v2", "user/inventory/items")

    def currency_balance(self) -> str:
        return self.url("v2", "user/virtual_currency_balance")

    def consume_item(self) -> str:
        return self.url("v1", "user/inventory/item/consume")

    # --- Payments ------------------------------------------------------------

    def item_payment(self, item_sku: str) -> str:
        return self.url("v1", f"payment/item/{quote(item_sku, safe='')}")

    def cart_payment(self, cart_id: int) -> str:
        return self.url("v1", f"payment/cart/{cart_id}")

    def order(self, order_id: int) -> str:
        return self.url("v1", f"order/{order_id}")

    def virtual_purchase(self, item_sku: str, currency_sku: str) -> str:
        return self.url("v2", f"payment/item/{quote(item_sku, safe='')}/virtual/{quote(currency_sku, safe='')}")

    # --- Cart ----------------------------------------------------------------

    def create_cart(self) -> str:
        return self.url("v1", "cart")

    def cart(self, cart_id: int) -> str:
        return self.url("v1", f"cart/{cart_id}")

    def clear_cart(self, cart_id: int) -> str:
        return self.url("v1", f"cart/{cart_id}/clear")

    def cart_item(self, cart_id: int, item_sku: str) -> str:
        return self.url("v1", f"cart/{cart_id}/item/{quote(item_sku, safe='')}")
