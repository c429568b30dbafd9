"""One-shot scan orchestration used by the CLI: config -> store -> vision -> session."""

from __future__ import annotations

import time
from typing import Optional

from .config import AppConfig, load_config
from .domain.models import PartRecord
from .errors import DraftIncompleteError
from .inventory.storage import SqliteSlotStorage
from .inventory.store import InventoryStore
from .logging import get_logger
from .recognition.vision import VisionClient, build_vision_client
from .session.camera import Camera, FileCamera
from .session.recognition import RecognitionSession, SessionState


LOG = get_logger("scan-service")


class ScanService:
    """High-level helper wiring the inventory, a camera and a vision client."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        store: Optional[InventoryStore] = None,
        vision: Optional[VisionClient] = None,
    ) -> None:
        self.config = config or load_config()
        self.store = store or InventoryStore(SqliteSlotStorage(self.config.db_path))
        self._vision = vision

    @property
    def vision(self) -> Optional[VisionClient]:
        if self._vision is None:
            self._vision = build_vision_client(self.config)
        return self._vision

    def new_session(self, camera: Camera) -> Optional[RecognitionSession]:
        vision = self.vision
        if vision is None:
            return None
        return RecognitionSession(self.store, camera, vision)

    def scan_file(self, image_path: str, *, timeout: Optional[float] = None) -> Optional[RecognitionSession]:
        """Run one capture/recognition cycle on an image file.

        Returns the settled session (PARSED or UNPARSED), or None when no
        vision client could be built from the configuration.
        """
        session = self.new_session(FileCamera(image_path))
        if session is None:
            return None
        wait = timeout if timeout is not None else self.config.vision_timeout + 5
        t0 = time.perf_counter()
        session.start_preview()
        session.request_capture()
        if not session.wait_until_settled(wait):
            LOG.error("No vision response within %ss; giving up", wait)
            session.reset()
        LOG.info(
            "Scan of %s finished as %s in %.2fs",
            image_path, session.state.value, time.perf_counter() - t0,
        )
        return session

    def scan_and_commit(
        self,
        image_path: str,
        *,
        quantity: int = 1,
        name: Optional[str] = None,
        spec: Optional[str] = None,
        function: Optional[str] = None,
    ) -> Optional[PartRecord]:
        """Scan, apply manual overrides on top of the recognized draft and commit."""
        session = self.scan_file(image_path)
        if session is None:
            return None
        try:
            if session.state not in (SessionState.PARSED, SessionState.UNPARSED):
                return None
            session.update_draft(name=name, spec=spec, function=function, quantity=quantity)
            try:
                return session.commit()
            except DraftIncompleteError as exc:
                LOG.error("Cannot save scanned part: %s", exc)
                return None
        finally:
            session.close()
