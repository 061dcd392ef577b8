from src.integrations.contracts.store import (
    Inventory,
    ItemGroup,
    StoreItem,
    VirtualCurrencyPackage,
)
from src.store.catalog import CatalogCache


def _item(sku, *groups):
    return StoreItem(sku=sku, groups=[{"external_id": g} for g in groups])


def test_replace_items_rebuilds_group_ids_and_keeps_groups():
    cache = CatalogCache()
    cache.replace_groups([ItemGroup(external_id="weapons")])

    data = cache.replace_items([_item("a", "weapons"), _item("b", "armor", "weapons"), _item("c")])

    assert data.group_ids == {"weapons", "armor"}
    assert [g.external_id for g in data.groups] == ["weapons"]

    cache.replace_items([_item("d")])
    assert cache.items_data.group_ids == set()
    assert [i.sku for i in cache.items_data.items] == ["d"]


def test_replace_groups_keeps_items():
    cache = CatalogCache()
    cache.replace_items([_item("a", "weapons")])

    cache.replace_groups([ItemGroup(external_id="weapons"), ItemGroup(external_id="potions")])

    assert [i.sku for i in cache.items_data.items] == ["a"]
    assert cache.items_data.group_ids == {"weapons"}
    assert len(cache.items_data.groups) == 2


def test_group_filters():
    cache = CatalogCache()
    cache.replace_items([_item("a", "weapons"), _item("b", "potions"), _item("c")])

    assert [i.sku for i in cache.get_virtual_items("potions")] == ["b"]
    assert [i.sku for i in cache.get_virtual_items("")] == ["a", "b", "c"]
    assert cache.get_virtual_items("missing") == []
    assert [i.sku for i in cache.get_virtual_items_without_group()] == ["c"]


def test_lookups_by_sku():
    cache = CatalogCache()
    cache.replace_items([_item("a")])
    cache.replace_currency_packages([VirtualCurrencyPackage(sku="gold-100")])

    assert cache.find_item("a").sku == "a"
    assert cache.find_item("gold-100") is None
    assert cache.find_currency_package("gold-100").sku == "gold-100"
    assert cache.find_currency_package("a") is None


def test_inventory_replaced_wholesale():
    cache = CatalogCache()
    cache.replace_inventory(Inventory(items=[{"sku": "a", "quantity": 1}, {"sku": "b", "quantity": 2}]))

    cache.replace_inventory(Inventory(items=[{"sku": "c", "quantity": 5}]))

    assert [(i.sku, i.quantity) for i in cache.inventory] == [("c", 5)]
