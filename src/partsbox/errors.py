from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    PARSE_FAILURE = "parse_failure"
    CAPTURE_FAILURE = "capture_failure"
    NETWORK_FAILURE = "network_failure"
    EMPTY_RESPONSE = "empty_response"
    RESPONSE_DECODE = "response_decode"
    PERSISTENCE_FAILURE = "persistence_failure"
    DEVICE_FAILURE = "device_failure"


@dataclass(frozen=True)
class Notice:
    """A dismissible, user-facing message."""

    kind: ErrorKind
    message: str
    title: str = "錯誤"


class PartsBoxError(Exception):
    kind = ErrorKind.NETWORK_FAILURE
    title = "錯誤"

    def to_notice(self) -> Notice:
        return Notice(kind=self.kind, title=self.title, message=str(self) or self.title)


class CaptureFailure(PartsBoxError):
    kind = ErrorKind.CAPTURE_FAILURE
    title = "拍照失敗"


class VisionError(PartsBoxError):
    """Base for failures to obtain usable text from the vision API."""


class NetworkFailure(VisionError):
    kind = ErrorKind.NETWORK_FAILURE
    title = "API 請求失敗"


class EmptyResponseFailure(VisionError):
    kind = ErrorKind.EMPTY_RESPONSE
    title = "API 錯誤"


class ResponseDecodeFailure(VisionError):
    kind = ErrorKind.RESPONSE_DECODE
    title = "API 回應解析失敗"


class PersistenceFailure(PartsBoxError):
    kind = ErrorKind.PERSISTENCE_FAILURE
    title = "儲存庫存失敗"


class DeviceFailure(PartsBoxError):
    kind = ErrorKind.DEVICE_FAILURE
    title = "傳送失敗"


class InventoryValidationError(ValueError):
    pass


class DraftIncompleteError(ValueError):
    pass
