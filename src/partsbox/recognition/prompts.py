"""Prompt text and UI placeholder strings shared by the vision clients and parser."""

from __future__ import annotations

from typing import Tuple

NAME_LABEL = "零件名稱"
SPEC_LABEL = "規格"
POWER_LABEL = "適用功率"
USAGE_LABEL = "常見用途"
FUNCTION_LABEL = "主要功能"

# Shown before anything was scanned and while a request is pending.
IDLE_PROMPT = "將電子零件放置於下方框內，然後點擊「辨識零件」按鈕。"
PROCESSING_PROMPT = "辨識中，請稍候..."
PLACEHOLDER_TEXTS: Tuple[str, ...] = (IDLE_PROMPT, PROCESSING_PROMPT)

# Canned answers produced without a real API call start with this marker.
SIMULATION_PREFIX = "[模擬模式]"

RECOGNITION_PROMPT = (
    "請辨識這張圖片中的電子零件，並用繁體中文、條列式的方式提供以下資訊，"
    "如果某項資訊不適用或無法辨識，請寫'N/A'：\n"
    f"1. **{NAME_LABEL}**: \n"
    f"2. **{SPEC_LABEL}**: (例如：阻值、電容值、型號)\n"
    f"3. **{POWER_LABEL}**: \n"
    f"4. **{USAGE_LABEL}**: (用於哪種電路或應用)\n"
    f"5. **{FUNCTION_LABEL}**: "
)


def simulated_answer(name: str, spec: str = "N/A", function: str = "N/A") -> str:
    """Build a template-shaped answer flagged as simulated (never parsed)."""
    return (
        f"{SIMULATION_PREFIX}\n"
        f"1. **{NAME_LABEL}**: {name}\n"
        f"2. **{SPEC_LABEL}**: {spec}\n"
        f"5. **{FUNCTION_LABEL}**: {function}"
    )
