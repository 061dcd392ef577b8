"""
Catalog and user-state cache.

Holds the last server state known to the client. Every slot is replaced
wholesale, and only by a successful response; the groups fetch touches the
group tree alone.
"""

from __future__ import annotations

from typing import List, Optional

from src.integrations.contracts.store import (
    Inventory,
    InventoryItem,
    ItemGroup,
    StoreItem,
    StoreItemsData,
    VirtualCurrency,
    VirtualCurrencyBalance,
    VirtualCurrencyPackage,
)


class CatalogCache:
    def __init__(self) -> None:
        self.items_data = StoreItemsData()
        self.virtual_currencies: List[VirtualCurrency] = []
        self.currency_packages: List[VirtualCurrencyPackage] = []
        self.inventory: List[InventoryItem] = []
        self.balance: List[VirtualCurrencyBalance] = []

    # --- Replacement (called from successful responses only) ------------------

    def replace_items(self, items: List[StoreItem]) -> StoreItemsData:
        group_ids = {group.external_id for item in items for group in item.groups}
        self.items_data = StoreItemsData(
            items=list(items),
            groups=self.items_data.groups,
            group_ids=group_ids,
        )
        return self.items_data

    def replace_groups(self, groups: List[ItemGroup]) -> List[ItemGroup]:
        self.items_data = self.items_data.model_copy(update={"groups": list(groups)})
        return self.items_data.groups

    def replace_virtual_currencies(self, currencies: List[VirtualCurrency]) -> List[VirtualCurrency]:
        self.virtual_currencies = list(currencies)
        return self.virtual_currencies

    def replace_currency_packages(self, packages: List[VirtualCurrencyPackage]) -> List[VirtualCurrencyPackage]:
        self.currency_packages = list(packages)
        return self.currency_packages

    def replace_inventory(self, inventory: Inventory) -> List[InventoryItem]:
        self.inventory = list(inventory.items)
        return self.inventory

    def replace_balance(self, balance: List[VirtualCurrencyBalance]) -> List[VirtualCurrencyBalance]:
        self.balance = list(balance)
        return self.balance

    # --- Lookups --------------------------------------------------------------

    def find_item(self, sku: str) -> Optional[StoreItem]:
        return next((item for item in self.items_data.items if item.sku == sku), None)

    def find_currency_package(self, sku: str) -> Optional[VirtualCurrencyPackage]:
        return next((package for package in self.currency_packages if package.sku == sku), None)

    def get_virtual_items(self, group_filter: str = "") -> List[StoreItem]:
        if not group_filter:
            return list(self.items_data.items)
        return [
            item
            for item in self.items_data.items
            if any(group.external_id == group_filter for group in item.groups)
        ]

    def get_virtual_items_without_group(self) -> List[StoreItem]:
        return [item for item in self.items_data.items if not item.groups]
