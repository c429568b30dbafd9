from typing import Optional

NOT_AVAILABLE = "N/A"

FULLWIDTH_COLON = "："


def normalize_colons(text: str) -> str:
    """Replace every full-width colon with an ASCII one."""
    return (text or "").replace(FULLWIDTH_COLON, ":")


def is_unknown(value: Optional[str]) -> bool:
    """True for None, blank strings and the N/A sentinel."""
    if value is None:
        return True
    v = str(value).strip()
    return not v or v == NOT_AVAILABLE


def function_or_sentinel(value: Optional[str]) -> str:
    """Return the trimmed function text, or N/A when blank."""
    v = (value or "").strip()
    return v if v else NOT_AVAILABLE


