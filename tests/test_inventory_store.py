import json

import pytest

from partsbox.errors import InventoryValidationError, PersistenceFailure
from partsbox.inventory.storage import MemorySlotStorage, SqliteSlotStorage
from partsbox.inventory.store import InventoryStore, deserialize_records, serialize_records


class _FailingStorage(MemorySlotStorage):
    def save(self, value: str) -> None:
        raise PersistenceFailure("disk full")


class _UnreadableStorage(MemorySlotStorage):
    def load(self):
        raise PersistenceFailure("locked")


def _store(raw=None) -> InventoryStore:
    return InventoryStore(MemorySlotStorage(raw))


def test_upsert_creates_then_merges_quantity():
    store = _store()
    first = store.upsert("電阻", "1K", 5)
    second = store.upsert("電阻", "1K", 3)
    assert len(store) == 1
    assert first.id == second.id
    assert second.quantity == 8
    assert store.get(first.id).quantity == 8


def test_first_known_function_wins():
    store = _store()
    store.upsert("電阻", "1K", 1, "限流")
    merged = store.upsert("電阻", "1K", 1, "分壓")
    assert merged.function == "限流"


def test_unknown_function_is_filled_on_merge():
    store = _store()
    store.upsert("電阻", "1K", 1)
    assert store.find("電阻", "1K").function == "N/A"
    merged = store.upsert("電阻", "1K", 2, "限流")
    assert merged.function == "限流"
    assert merged.quantity == 3


def test_empty_function_is_stored_as_na():
    store = _store()
    assert store.upsert("LED", "", 1, "").function == "N/A"


def test_dedup_key_is_exact_and_case_sensitive():
    store = _store()
    store.upsert("電阻", "1K", 1)
    store.upsert("電阻", "1k", 1)
    store.upsert("電阻 ", "1K", 1)
    assert len(store) == 3


def test_adjust_quantity_floors_at_zero_without_deleting():
    store = _store()
    rec = store.upsert("電容", "10uF", 5)
    updated = store.adjust_quantity(rec.id, -100)
    assert updated.quantity == 0
    assert len(store) == 1
    assert store.adjust_quantity(rec.id, 2).quantity == 2


def test_adjust_unknown_id_returns_none():
    assert _store().adjust_quantity("missing", 1) is None


def test_delete_preserves_order_of_remaining():
    store = _store()
    a = store.upsert("A", "", 1)
    b = store.upsert("B", "", 1)
    c = store.upsert("C", "", 1)
    assert store.delete([b.id, "unknown"]) == 1
    assert [r.id for r in store] == [a.id, c.id]


def test_delete_at_offsets():
    store = _store()
    for name in ("A", "B", "C", "D"):
        store.upsert(name, "", 1)
    assert store.delete_at([0, 2, 99]) == 2
    assert [r.name for r in store] == ["B", "D"]


def test_every_mutation_persists_full_collection():
    storage = MemorySlotStorage()
    store = InventoryStore(storage)
    rec = store.upsert("A", "", 1)
    store.upsert("B", "", 1)
    store.adjust_quantity(rec.id, 1)
    store.delete([rec.id])
    assert storage.save_count == 4
    assert [e["name"] for e in json.loads(storage.value)] == ["B"]


def test_items_are_copies():
    store = _store()
    rec = store.upsert("A", "", 1)
    store.items[0].quantity = 99
    assert store.get(rec.id).quantity == 1


def test_invalid_upsert_raises():
    store = _store()
    with pytest.raises(InventoryValidationError):
        store.upsert("", "1K", 1)
    with pytest.raises(InventoryValidationError):
        store.upsert("A", "", -1)
    assert len(store) == 0


def test_save_failure_is_recorded_not_raised():
    store = InventoryStore(_FailingStorage())
    rec = store.upsert("A", "", 1)
    assert rec.quantity == 1
    assert len(store) == 1
    assert isinstance(store.last_persistence_error, PersistenceFailure)


def test_load_failure_starts_empty():
    store = InventoryStore(_UnreadableStorage("[]"))
    assert len(store) == 0
    assert store.last_persistence_error is not None


def test_corrupt_data_starts_empty():
    for raw in ("not json", '{"a": 1}', '[{"id": "x", "name": "", "spec": "", "quantity": 1}]',
                '[{"id": "x", "name": "A", "spec": "", "quantity": -1}]'):
        store = _store(raw)
        assert len(store) == 0
        assert store.last_persistence_error is not None


def test_legacy_entry_without_function_loads_as_na():
    raw = json.dumps([
        {"id": "1", "name": "電阻", "spec": "1K", "quantity": 2},
        {"id": "2", "name": "LED", "spec": "", "quantity": 1, "function": ""},
    ])
    store = _store(raw)
    assert [r.function for r in store] == ["N/A", "N/A"]


def test_duplicates_in_stored_data_are_folded():
    raw = json.dumps([
        {"id": "1", "name": "電阻", "spec": "1K", "quantity": 2, "function": "N/A"},
        {"id": "2", "name": "LED", "spec": "", "quantity": 1, "function": "發光"},
        {"id": "3", "name": "電阻", "spec": "1K", "quantity": 3, "function": "限流"},
    ])
    storage = MemorySlotStorage(raw)
    store = InventoryStore(storage)
    assert [(r.id, r.quantity, r.function) for r in store] == [("1", 5, "限流"), ("2", 1, "發光")]
    assert len(json.loads(storage.value)) == 2


def test_serialize_round_trip_keeps_ids_order_and_text():
    store = _store()
    store.upsert("電阻", "1KΩ", 4, "限流")
    store.upsert("BJT", "2N3904", 1)
    raw = serialize_records(store.items)
    assert "電阻" in raw
    assert deserialize_records(raw) == store.items


def test_sqlite_storage_survives_restart(tmp_path):
    db_path = tmp_path / "var" / "inventory.sqlite3"
    store = InventoryStore(SqliteSlotStorage(str(db_path)))
    a = store.upsert("電阻", "1K", 5, "限流")
    b = store.upsert("MOS", "2N7000", 2)

    reopened = InventoryStore(SqliteSlotStorage(str(db_path)))
    assert [(r.id, r.name, r.quantity) for r in reopened] == [(a.id, "電阻", 5), (b.id, "MOS", 2)]
    assert reopened.last_persistence_error is None


def test_sqlite_storage_empty_slot_loads_none(tmp_path):
    storage = SqliteSlotStorage(str(tmp_path / "db.sqlite3"))
    assert storage.load() is None
    storage.save("[]")
    assert storage.load() == "[]"
    assert SqliteSlotStorage(str(tmp_path / "db.sqlite3"), key="Other").load() is None


def test_sqlite_storage_defers_errors_until_load(tmp_path):
    db_path = tmp_path / "corrupt.sqlite3"
    db_path.write_bytes(b"\x13\x37 definitely not sqlite" * 50)
    storage = SqliteSlotStorage(str(db_path))
    with pytest.raises(PersistenceFailure):
        storage.load()

    store = InventoryStore(storage)
    assert len(store) == 0
    assert isinstance(store.last_persistence_error, PersistenceFailure)
    store.upsert("電阻", "1K", 1)
    assert len(store) == 1
    assert isinstance(store.last_persistence_error, PersistenceFailure)
