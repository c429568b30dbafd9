from __future__ import annotations

import re
from typing import Optional

from ..domain.models import RecognitionSummary
from ..domain.normalize import NOT_AVAILABLE, normalize_colons
from ..logging import get_logger
from .prompts import (
    FUNCTION_LABEL,
    NAME_LABEL,
    PLACEHOLDER_TEXTS,
    SIMULATION_PREFIX,
    SPEC_LABEL,
)


LOG = get_logger("recognition-parser")


def _label_pattern(label: str) -> re.Pattern[str]:
    # Accepts **label**:, **label** and **label:** (colons already normalized).
    return re.compile(r"\*\*" + re.escape(label) + r"(?:\*\*[ \t]*:?|:[ \t]*\*\*)")


_NAME_RE = _label_pattern(NAME_LABEL)
_SPEC_RE = _label_pattern(SPEC_LABEL)
_FUNCTION_RE = _label_pattern(FUNCTION_LABEL)


def _field_value(text: str, pattern: re.Pattern[str]) -> Optional[str]:
    """Return the stripped text after the label up to the next newline, or None if absent."""
    m = pattern.search(text)
    if not m:
        return None
    start = m.end()
    end = text.find("\n", start)
    if end == -1:
        end = len(text)
    return text[start:end].strip()


def is_recognition_payload(raw_text: Optional[str]) -> bool:
    """False for blank text, UI placeholders and simulated answers."""
    trimmed = (raw_text or "").strip()
    if not trimmed:
        return False
    if trimmed in PLACEHOLDER_TEXTS:
        return False
    if trimmed.startswith(SIMULATION_PREFIX):
        return False
    return True


def parse_recognition_text(raw_text: Optional[str]) -> Optional[RecognitionSummary]:
    """Extract name/spec/function from a vision answer.

    Returns None when the text is not a recognition payload or carries no
    usable part name. Never raises.
    """
    if not is_recognition_payload(raw_text):
        return None
    text = normalize_colons(raw_text.strip())

    name = _field_value(text, _NAME_RE)
    if not name or name == NOT_AVAILABLE:
        LOG.debug("No usable part name in response (name=%r)", name)
        return None

    spec = _field_value(text, _SPEC_RE)
    if spec is None or spec == NOT_AVAILABLE:
        spec = ""

    function = _field_value(text, _FUNCTION_RE)
    if not function:
        function = NOT_AVAILABLE

    summary = RecognitionSummary(name=name, spec=spec, function=function)
    LOG.debug("Parsed recognition summary: %s", summary.as_dict())
    return summary
