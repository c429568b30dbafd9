"""Parts inventory: reconciliation rules and the persisted slot."""

from .storage import SlotStorage, MemorySlotStorage, SqliteSlotStorage
from .store import InventoryStore, serialize_records, deserialize_records

__all__ = [
    "SlotStorage",
    "MemorySlotStorage",
    "SqliteSlotStorage",
    "InventoryStore",
    "serialize_records",
    "deserialize_records",
]
