from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..domain.models import InventoryDraft, RecognitionSummary
from ..domain.normalize import NOT_AVAILABLE

_DIGITS_RE = re.compile(r"[0-9]+")


@dataclass
class DraftForm:
    """User-editable fields of the part about to be committed."""

    name: str = ""
    spec: str = ""
    function: str = ""
    quantity: int = 1
    quantity_text: str = "1"

    @property
    def trimmed_name(self) -> str:
        return self.name.strip()

    @property
    def trimmed_spec(self) -> str:
        return self.spec.strip()

    @property
    def trimmed_function(self) -> str:
        return self.function.strip()

    @property
    def is_committable(self) -> bool:
        return self.make_draft().is_complete

    def set_quantity(self, value: int) -> None:
        """Stepper-style update; never goes below one."""
        self.quantity = max(1, int(value))
        self.quantity_text = str(self.quantity)

    def set_quantity_text(self, text: str) -> str:
        """Apply free-text quantity input and return the text to render.

        Non-digit input, blank input and values below one restore the last
        valid quantity text instead of changing the quantity.
        """
        if not _DIGITS_RE.fullmatch(text or "") or int(text) <= 0:
            self.quantity_text = str(max(1, self.quantity))
            return self.quantity_text
        self.quantity = int(text)
        self.quantity_text = text
        return self.quantity_text

    def apply_summary(self, summary: Optional[RecognitionSummary]) -> None:
        if summary is None:
            return
        self.name = summary.name
        if summary.spec:
            self.spec = summary.spec
        if summary.function != NOT_AVAILABLE:
            self.function = summary.function

    def make_draft(self) -> InventoryDraft:
        return InventoryDraft(
            name=self.trimmed_name,
            spec=self.trimmed_spec,
            function=self.trimmed_function,
            quantity=self.quantity,
        )

    def reset(self) -> None:
        self.name = ""
        self.spec = ""
        self.function = ""
        self.quantity = 1
        self.quantity_text = "1"
