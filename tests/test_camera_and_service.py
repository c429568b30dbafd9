import io
from pathlib import Path

from PIL import Image

from partsbox.config import AppConfig
from partsbox.errors import CaptureFailure, ErrorKind
from partsbox.inventory.storage import MemorySlotStorage
from partsbox.inventory.store import InventoryStore
from partsbox.recognition.prompts import SIMULATION_PREFIX
from partsbox.recognition.vision import SimulatedVisionClient, VisionClient
from partsbox.service import ScanService
from partsbox.session.camera import FileCamera
from partsbox.session.recognition import SessionState


ANSWER = "1. **零件名稱**: 電晶體\n2. **規格**: 2N3904\n5. **主要功能**: 開關"


class _StaticVision(VisionClient):
    def __init__(self, answer=ANSWER):
        self.answer = answer
        self.images = []

    def recognize(self, image_bytes):
        self.images.append(image_bytes)
        return self.answer


def _photo(tmp_path: Path, size=(3000, 1500)) -> str:
    path = tmp_path / "part.png"
    Image.new("RGBA", size, (200, 30, 30, 255)).save(path)
    return str(path)


def _config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        backend="gemini",
        gemini_api_key=None,
        gemini_model="gemini-2.5-flash",
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        openai_base_url=None,
        db_path=str(tmp_path / "db.sqlite3"),
        vision_timeout=5,
    )


def test_file_camera_reencodes_and_downsizes(tmp_path):
    data = FileCamera(_photo(tmp_path), max_edge=800).capture_bytes()
    assert data[:2] == b"\xff\xd8"
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"
        assert max(img.size) == 800


def test_file_camera_reports_failures_through_callback(tmp_path):
    results = []
    FileCamera(str(tmp_path / "missing.jpg")).request_capture(results.append)
    bogus = tmp_path / "bogus.jpg"
    bogus.write_bytes(b"not an image")
    FileCamera(str(bogus)).request_capture(results.append)
    assert len(results) == 2
    assert all(isinstance(r, CaptureFailure) for r in results)


def test_scan_and_commit_applies_overrides(tmp_path):
    store = InventoryStore(MemorySlotStorage())
    vision = _StaticVision()
    svc = ScanService(_config(tmp_path), store=store, vision=vision)
    record = svc.scan_and_commit(_photo(tmp_path), quantity=3, function="放大")
    assert (record.name, record.spec, record.quantity, record.function) == ("電晶體", "2N3904", 3, "放大")
    assert vision.images and vision.images[0][:2] == b"\xff\xd8"
    assert store.find("電晶體", "2N3904").quantity == 3


def test_scan_file_with_simulated_backend_needs_manual_entry(tmp_path):
    svc = ScanService(_config(tmp_path), store=InventoryStore(MemorySlotStorage()), vision=SimulatedVisionClient())
    session = svc.scan_file(_photo(tmp_path))
    try:
        assert session.state == SessionState.UNPARSED
        assert session.failure_reason == ErrorKind.PARSE_FAILURE
        assert session.display_text.startswith(SIMULATION_PREFIX)
    finally:
        session.close()


def test_scan_without_credentials_returns_none(tmp_path):
    svc = ScanService(_config(tmp_path), store=InventoryStore(MemorySlotStorage()))
    assert svc.scan_file(_photo(tmp_path)) is None
    assert svc.scan_and_commit(_photo(tmp_path)) is None


def test_scan_of_missing_file_is_capture_failure(tmp_path):
    svc = ScanService(_config(tmp_path), store=InventoryStore(MemorySlotStorage()), vision=_StaticVision())
    session = svc.scan_file(str(tmp_path / "nope.jpg"))
    try:
        assert session.state == SessionState.UNPARSED
        assert session.notice.kind == ErrorKind.CAPTURE_FAILURE
    finally:
        session.close()
