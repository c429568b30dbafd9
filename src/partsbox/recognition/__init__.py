"""Turning a component photo into structured part fields."""

from .parser import parse_recognition_text, is_recognition_payload
from .vision import (
    VisionClient,
    GeminiVisionClient,
    OpenAIVisionClient,
    SimulatedVisionClient,
    build_vision_client,
)

__all__ = [
    "parse_recognition_text",
    "is_recognition_payload",
    "VisionClient",
    "GeminiVisionClient",
    "OpenAIVisionClient",
    "SimulatedVisionClient",
    "build_vision_client",
]
