import json

from src.database.saves import InMemorySaveStore
from src.database.saves_file import JsonFileSaveStore


def test_in_memory_store_copies_documents():
    store = InMemorySaveStore()
    doc = {"cart_id": 42, "cart_currency": "USD"}

    store.save("store", doc)
    doc["cart_id"] = 7
    loaded = store.load("store")
    loaded["cart_currency"] = "EUR"

    assert store.load("store") == {"cart_id": 42, "cart_currency": "USD"}


def test_in_memory_delete_is_idempotent():
    store = InMemorySaveStore()
    store.save("login", {"username": "player"})

    store.delete("login")
    store.delete("login")

    assert store.load("login") is None


def test_json_file_store_round_trip(tmp_path):
    store = JsonFileSaveStore(tmp_path / "saves")

    store.save("store", {"cart_id": 42, "cart_currency": "USD"})

    assert store.load("store") == {"cart_id": 42, "cart_currency": "USD"}
    on_disk = json.loads((tmp_path / "saves" / "store.json").read_text(encoding="utf-8"))
    assert on_disk["cart_id"] == 42
    assert not list((tmp_path / "saves").glob("*.tmp"))


def test_json_file_store_missing_and_corrupt_slots(tmp_path):
    store = JsonFileSaveStore(tmp_path)
    (tmp_path / "login.json").write_text("{broken", encoding="utf-8")

    assert store.load("store") is None
    assert store.load("login") is None

    store.delete("store")
    store.delete("login")
    assert not (tmp_path / "login.json").exists()
