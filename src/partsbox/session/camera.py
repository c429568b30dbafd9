"""Camera collaborators: something that can be started and asked for one photo."""

from __future__ import annotations

import io
import os
from typing import Callable, Optional, Union

from PIL import Image, ImageOps

from ..errors import CaptureFailure
from ..logging import get_logger


LOG = get_logger("session-camera")

CaptureResult = Union[bytes, Exception]
CaptureCallback = Callable[[CaptureResult], None]


class Camera:
    @property
    def is_running(self) -> bool:
        raise NotImplementedError

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def request_capture(self, callback: CaptureCallback) -> None:
        """Deliver JPEG bytes or an exception to callback exactly once."""
        raise NotImplementedError


class FileCamera(Camera):
    """Uses an image file on disk as the photo.

    The file is decoded with Pillow, rotated per EXIF, converted to RGB,
    shrunk so its longest edge is at most `max_edge` and re-encoded as JPEG.
    """

    def __init__(self, image_path: Optional[str] = None, *, max_edge: int = 1600, quality: int = 90) -> None:
        self.image_path = image_path
        self.max_edge = max_edge
        self.quality = quality
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def request_capture(self, callback: CaptureCallback) -> None:
        try:
            data = self.capture_bytes()
        except CaptureFailure as exc:
            LOG.error("Capture failed: %s", exc)
            callback(exc)
            return
        callback(data)

    def capture_bytes(self) -> bytes:
        path = self.image_path
        if not path or not os.path.isfile(path):
            raise CaptureFailure(f"找不到影像檔案：{path}")
        try:
            with Image.open(path) as img:
                img = ImageOps.exif_transpose(img)
                img = img.convert("RGB")
                img.thumbnail((self.max_edge, self.max_edge))
                buf = io.BytesIO()
                img.save(buf, format="JPEG", quality=self.quality)
        except OSError as exc:
            # Pillow's UnidentifiedImageError is an OSError
            raise CaptureFailure(f"無法處理拍攝的影像資料：{exc}") from exc
        data = buf.getvalue()
        if not data:
            raise CaptureFailure("無法處理拍攝的影像資料。")
        LOG.debug("Captured %d JPEG bytes from %s", len(data), path)
        return data
