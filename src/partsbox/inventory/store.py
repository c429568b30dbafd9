from __future__ import annotations

import json
import threading
from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..domain.models import PartRecord
from ..domain.normalize import NOT_AVAILABLE, is_unknown
from ..errors import InventoryValidationError, PersistenceFailure
from ..logging import get_logger
from .storage import SlotStorage


LOG = get_logger("inventory-store")


def serialize_records(records: Iterable[PartRecord]) -> str:
    return json.dumps([r.as_dict() for r in records], ensure_ascii=False)


def deserialize_records(raw: str) -> List[PartRecord]:
    """Decode a stored collection; raises ValueError on any malformed entry."""
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("stored inventory must be a JSON array")
    records: List[PartRecord] = []
    for idx, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"entry[{idx}] must be an object")
        for key in ("id", "name", "spec"):
            if not isinstance(entry.get(key), str):
                raise ValueError(f"entry[{idx}].{key} must be a string")
        if not entry["name"]:
            raise ValueError(f"entry[{idx}].name must not be empty")
        qty = entry.get("quantity")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
            raise ValueError(f"entry[{idx}].quantity must be a non-negative integer")
        function = entry.get("function")
        if function is not None and not isinstance(function, str):
            raise ValueError(f"entry[{idx}].function must be a string")
        records.append(PartRecord.from_dict(entry))
    return records


def _merge_into(existing: PartRecord, quantity: int, function: str) -> None:
    existing.quantity += quantity
    if is_unknown(existing.function):
        existing.function = function


class InventoryStore:
    """Owns the part collection and persists it to a single slot on every change.

    - Dedup key is the exact `(name, spec)` pair; callers trim beforehand.
    - Quantities accumulate on merge; the first known function wins.
    - Load failures yield an empty inventory and are only logged.
    """

    def __init__(self, storage: SlotStorage, *, autoload: bool = True) -> None:
        self.storage = storage
        self._items: List[PartRecord] = []
        self._lock = threading.RLock()
        self.last_persistence_error: Optional[PersistenceFailure] = None
        if autoload:
            self.load()

    # --------------- read access ---------------
    @property
    def items(self) -> List[PartRecord]:
        with self._lock:
            return [replace(r) for r in self._items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[PartRecord]:
        return iter(self.items)

    def get(self, part_id: str) -> Optional[PartRecord]:
        with self._lock:
            idx = self._index_of(part_id)
            return replace(self._items[idx]) if idx is not None else None

    def find(self, name: str, spec: str) -> Optional[PartRecord]:
        with self._lock:
            for r in self._items:
                if r.name == name and r.spec == spec:
                    return replace(r)
        return None

    def _index_of(self, part_id: str) -> Optional[int]:
        for idx, r in enumerate(self._items):
            if r.id == part_id:
                return idx
        return None

    # --------------- mutations ---------------
    def upsert(self, name: str, spec: str, quantity: int, function: str = NOT_AVAILABLE) -> PartRecord:
        if not isinstance(name, str) or not name:
            raise InventoryValidationError("name required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InventoryValidationError(f"quantity must be a non-negative integer: {quantity!r}")
        spec = spec or ""
        function = function if function else NOT_AVAILABLE
        with self._lock:
            for r in self._items:
                if r.name == name and r.spec == spec:
                    _merge_into(r, quantity, function)
                    LOG.info(
                        "Part '%s - %s' exists; quantity +%d -> %d, function: %s",
                        name, spec, quantity, r.quantity, r.function,
                    )
                    record = r
                    break
            else:
                record = PartRecord(name=name, spec=spec, quantity=quantity, function=function)
                self._items.append(record)
                LOG.info("Added part '%s - %s' qty=%d function=%s", name, spec, quantity, function)
            self._persist()
            return replace(record)

    def adjust_quantity(self, part_id: str, delta: int) -> Optional[PartRecord]:
        with self._lock:
            idx = self._index_of(part_id)
            if idx is None:
                LOG.warning("adjust_quantity: unknown part id %s", part_id)
                return None
            record = self._items[idx]
            record.quantity = max(0, record.quantity + int(delta))
            LOG.debug("Quantity of %s now %d (delta %+d)", part_id, record.quantity, delta)
            self._persist()
            return replace(record)

    def delete(self, ids: Iterable[str]) -> int:
        targets = set(ids)
        with self._lock:
            kept = [r for r in self._items if r.id not in targets]
            removed = len(self._items) - len(kept)
            if removed:
                self._items = kept
                LOG.info("Deleted %d part(s)", removed)
                self._persist()
            return removed

    def delete_at(self, offsets: Iterable[int]) -> int:
        with self._lock:
            ids = [self._items[i].id for i in set(offsets) if 0 <= i < len(self._items)]
            return self.delete(ids)

    # --------------- persistence ---------------
    def load(self) -> None:
        """Replace the in-memory collection with the stored one."""
        with self._lock:
            try:
                raw = self.storage.load()
            except PersistenceFailure as exc:
                LOG.error("Loading inventory failed: %s", exc)
                self.last_persistence_error = exc
                self._items = []
                return
            if raw is None:
                LOG.info("No stored inventory; starting empty")
                self._items = []
                return
            try:
                records = deserialize_records(raw)
            except ValueError as exc:
                # json.JSONDecodeError is a ValueError too
                LOG.error("Stored inventory could not be decoded; starting empty: %s", exc)
                self.last_persistence_error = PersistenceFailure(str(exc))
                self._items = []
                return
            self._items, folded = self._fold_duplicates(records)
            LOG.info("Loaded %d part(s)", len(self._items))
            if folded:
                LOG.info("Folded %d duplicate part(s) found in stored inventory", folded)
                self._persist()

    @staticmethod
    def _fold_duplicates(records: List[PartRecord]) -> Tuple[List[PartRecord], int]:
        seen: Dict[Tuple[str, str], PartRecord] = {}
        result: List[PartRecord] = []
        for r in records:
            canonical = seen.get(r.key)
            if canonical is None:
                seen[r.key] = r
                result.append(r)
                continue
            _merge_into(canonical, r.quantity, r.function)
        return result, len(records) - len(result)

    def _persist(self) -> None:
        try:
            self.storage.save(serialize_records(self._items))
        except PersistenceFailure as exc:
            LOG.error("Saving inventory failed: %s", exc)
            self.last_persistence_error = exc
            return
        self.last_persistence_error = None

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [r.as_dict() for r in self._items]
