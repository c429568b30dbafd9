"""Capture -> recognize -> edit -> commit workflow."""

from .camera import Camera, FileCamera
from .draft import DraftForm
from .recognition import RecognitionSession, SessionState

__all__ = [
    "Camera",
    "FileCamera",
    "DraftForm",
    "RecognitionSession",
    "SessionState",
]
