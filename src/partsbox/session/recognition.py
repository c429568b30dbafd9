"""Recognition session: capture -> pending response -> parsed draft -> commit."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional

from ..domain.models import PartRecord, RecognitionSummary
from ..errors import (
    CaptureFailure,
    DraftIncompleteError,
    ErrorKind,
    NetworkFailure,
    Notice,
    PartsBoxError,
    VisionError,
)
from ..inventory.store import InventoryStore
from ..logging import get_logger
from ..recognition.parser import parse_recognition_text
from ..recognition.prompts import IDLE_PROMPT, PROCESSING_PROMPT
from ..recognition.vision import VisionClient
from .camera import Camera, CaptureResult
from .draft import DraftForm


LOG = get_logger("session-recognition")


class SessionState(str, Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"
    CAPTURING = "capturing"
    AWAITING_RESPONSE = "awaiting_response"
    PARSED = "parsed"
    UNPARSED = "unparsed"


BUSY_STATES = frozenset({SessionState.CAPTURING, SessionState.AWAITING_RESPONSE})

Parser = Callable[[str], Optional[RecognitionSummary]]


class RecognitionSession:
    """Owns one draft and at most one capture/response cycle.

    Camera and network callbacks may arrive on other threads; every read or
    write of session state happens under one re-entrant lock. A callback
    whose request token no longer matches the pending one (after reset,
    teardown or commit) is dropped.
    """

    def __init__(
        self,
        store: InventoryStore,
        camera: Camera,
        vision: VisionClient,
        *,
        executor: Optional[Executor] = None,
        parser: Parser = parse_recognition_text,
    ) -> None:
        self.store = store
        self.camera = camera
        self.vision = vision
        self.parser = parser
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._generation = 0
        self._pending: Optional[int] = None

        self.state = SessionState.IDLE
        self.draft = DraftForm()
        self.raw_text: Optional[str] = None
        self.summary: Optional[RecognitionSummary] = None
        self.notice: Optional[Notice] = None
        self.failure_reason: Optional[ErrorKind] = None

    # --------------- observers ---------------
    @property
    def in_flight(self) -> int:
        with self._lock:
            return 0 if self._pending is None else 1

    @property
    def display_text(self) -> str:
        with self._lock:
            if self.state in BUSY_STATES:
                return PROCESSING_PROMPT
            return self.raw_text or IDLE_PROMPT

    @property
    def can_commit(self) -> bool:
        with self._lock:
            return self.draft.is_committable

    def wait_until_settled(self, timeout: Optional[float] = None) -> bool:
        """Block until no capture/response is pending; False on timeout."""
        with self._changed:
            return self._changed.wait_for(lambda: self._pending is None, timeout)

    def _set_state(self, state: SessionState) -> None:
        if state != self.state:
            LOG.debug("Session %s -> %s", self.state.value, state.value)
        self.state = state
        self._changed.notify_all()

    # --------------- camera lifecycle ---------------
    def start_preview(self) -> None:
        with self._lock:
            self.camera.start()
            if self.state == SessionState.IDLE:
                self._set_state(SessionState.PREVIEWING)

    def request_capture(self) -> bool:
        """Start a capture; a no-op returning False while busy or camera stopped."""
        with self._lock:
            if not self.camera.is_running:
                LOG.debug("Capture ignored: camera not running")
                return False
            if self._pending is not None:
                LOG.debug("Capture ignored: request %s still pending", self._pending)
                return False
            self._generation += 1
            token = self._generation
            self._pending = token
            self.notice = None
            self.failure_reason = None
            self._set_state(SessionState.CAPTURING)
        try:
            self.camera.request_capture(lambda result: self.on_capture_result(token, result))
        except Exception as exc:
            LOG.exception("Camera raised while requesting a capture")
            self.on_capture_result(token, CaptureFailure(str(exc)))
        return True

    def on_capture_result(self, token: int, result: CaptureResult) -> None:
        with self._lock:
            if token != self._pending:
                LOG.debug("Discarding stale capture result for request %s", token)
                return
            if isinstance(result, Exception) or not result:
                if isinstance(result, CaptureFailure):
                    failure = result
                elif isinstance(result, Exception):
                    failure = CaptureFailure(str(result))
                else:
                    failure = CaptureFailure("無法處理拍攝的影像資料。")
                self._pending = None
                self._fail(failure)
                return
            self._set_state(SessionState.AWAITING_RESPONSE)
            try:
                future = self._get_executor().submit(self.vision.recognize, result)
            except RuntimeError as exc:
                # executor already shut down
                self._pending = None
                self._fail(NetworkFailure(str(exc)))
                return
        future.add_done_callback(lambda f: self._on_response_done(token, f))

    def _on_response_done(self, token: int, future: Future) -> None:
        with self._lock:
            if token != self._pending:
                LOG.debug("Discarding response for request %s after reset", token)
                return
            self._pending = None
            try:
                text = future.result()
            except VisionError as exc:
                self._fail(exc)
                return
            except Exception as exc:
                LOG.exception("Vision client failed unexpectedly")
                self._fail(NetworkFailure(str(exc)))
                return
            self._apply_response(text)

    def _apply_response(self, text: str) -> None:
        self.raw_text = text
        summary = self.parser(text)
        self.summary = summary
        if summary is None:
            LOG.info("Response did not contain a usable part; manual entry required")
            self.failure_reason = ErrorKind.PARSE_FAILURE
            self._set_state(SessionState.UNPARSED)
            return
        self.draft.apply_summary(summary)
        self.failure_reason = None
        self._set_state(SessionState.PARSED)

    def _fail(self, error: PartsBoxError) -> None:
        LOG.warning("%s: %s", error.kind.value, error)
        self.summary = None
        self.notice = error.to_notice()
        self.failure_reason = error.kind
        self._set_state(SessionState.UNPARSED)

    def dismiss_notice(self) -> None:
        with self._lock:
            self.notice = None

    # --------------- draft editing ---------------
    def update_draft(
        self,
        *,
        name: Optional[str] = None,
        spec: Optional[str] = None,
        function: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> None:
        with self._lock:
            if name is not None:
                self.draft.name = name
            if spec is not None:
                self.draft.spec = spec
            if function is not None:
                self.draft.function = function
            if quantity is not None:
                self.draft.set_quantity(quantity)

    def set_quantity_text(self, text: str) -> str:
        with self._lock:
            return self.draft.set_quantity_text(text)

    def commit(self) -> PartRecord:
        """Upsert the draft into the store and start over."""
        with self._lock:
            if not self.draft.is_committable:
                raise DraftIncompleteError("part name and a positive quantity are required")
            draft = self.draft.make_draft()
            record = self.store.upsert(draft.name, draft.spec, draft.quantity, draft.stored_function)
            self._clear()
            return record

    # --------------- reset / teardown ---------------
    def reset(self) -> None:
        with self._lock:
            self._clear()

    def teardown(self) -> None:
        with self._lock:
            self.camera.stop()
            self._clear()

    def close(self) -> None:
        self.teardown()
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def _clear(self) -> None:
        self._pending = None
        self.draft.reset()
        self.raw_text = None
        self.summary = None
        self.notice = None
        self.failure_reason = None
        self._set_state(SessionState.PREVIEWING if self.camera.is_running else SessionState.IDLE)

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="partsbox-vision")
            self._owns_executor = True
        return self._executor
