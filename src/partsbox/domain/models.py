from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .normalize import NOT_AVAILABLE, function_or_sentinel


def new_part_id() -> str:
    return str(uuid.uuid4())


@dataclass
class PartRecord:
    """One inventory line. `(name, spec)` is the dedup key."""

    name: str
    spec: str
    quantity: int
    function: str = NOT_AVAILABLE
    id: str = field(default_factory=new_part_id)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.spec)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PartRecord":
        return cls(
            id=data["id"],
            name=data["name"],
            spec=data["spec"],
            quantity=data["quantity"],
            function=data.get("function") or NOT_AVAILABLE,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "spec": self.spec,
            "quantity": self.quantity,
            "function": self.function,
        }


@dataclass(frozen=True)
class RecognitionSummary:
    name: str
    spec: str = ""
    function: str = NOT_AVAILABLE

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "spec": self.spec, "function": self.function}


@dataclass(frozen=True)
class InventoryDraft:
    """Trimmed draft values ready to be upserted."""

    name: str
    spec: str
    function: str
    quantity: int

    @property
    def stored_function(self) -> str:
        return function_or_sentinel(self.function)

    @property
    def is_complete(self) -> bool:
        return bool(self.name) and self.quantity > 0
