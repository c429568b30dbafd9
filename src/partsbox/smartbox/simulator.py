"""Simulated smart parts box: connect, disconnect and dispense-by-command."""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import DeviceFailure, Notice
from ..logging import get_logger


LOG = get_logger("smartbox-simulator")

COMPONENT_CATALOGUE: Dict[str, Tuple[str, ...]] = {
    "電阻": ("1K", "2K", "3K"),
    "BJT": ("2N3904", "BC547", "S8050"),
    "MOS": ("IRF540N", "2N7000", "BS170"),
}
CATEGORIES: Tuple[str, ...] = tuple(COMPONENT_CATALOGUE)

STATUS_DISCONNECTED = "尚未連線"
STATUS_CONNECTING = "模擬連線中..."
STATUS_CONNECTED = "✅ 已連線 (模擬模式)"
NOT_CONNECTED_MESSAGE = "尚未連接到智慧零件盒，請先點擊連接。"


class SimulatedPartsBox:
    """Stand-in for the Bluetooth parts box.

    Connecting completes after `connect_delay` seconds and a dispense
    command shows a busy status for `dispense_delay` seconds. A delay of
    zero or less applies the change immediately, which tests rely on.
    """

    def __init__(self, *, connect_delay: float = 0.5, dispense_delay: float = 2.0) -> None:
        self.connect_delay = connect_delay
        self.dispense_delay = dispense_delay
        self.status_message = STATUS_DISCONNECTED
        self.is_connected = False
        self.notice: Optional[Notice] = None
        self.sent_commands: List[str] = []
        self._lock = threading.Lock()
        self._timers: List[threading.Timer] = []

    @staticmethod
    def parts_in(category: str) -> Tuple[str, ...]:
        return COMPONENT_CATALOGUE.get(category, ())

    def _later(self, delay: float, fn: Callable[[], None]) -> None:
        if delay <= 0:
            fn()
            return
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        with self._lock:
            self._timers.append(timer)
        timer.start()

    def toggle_connection(self) -> None:
        if self.is_connected:
            self.disconnect()
        else:
            self.connect()

    def connect(self) -> None:
        with self._lock:
            if self.is_connected:
                return
            self.status_message = STATUS_CONNECTING
        LOG.info("Simulated connect requested")

        def _connected() -> None:
            with self._lock:
                self.is_connected = True
                self.status_message = STATUS_CONNECTED
            LOG.info("Simulated parts box connected")

        self._later(self.connect_delay, _connected)

    def disconnect(self) -> None:
        with self._lock:
            self.is_connected = False
            self.status_message = STATUS_DISCONNECTED
        LOG.info("Simulated parts box disconnected")

    def send(self, command: str) -> bool:
        """Ask the box to dispense `command`; False if ignored or refused."""
        if not command:
            return False
        with self._lock:
            if not self.is_connected:
                LOG.warning("Command '%s' refused: box not connected", command)
                self.notice = DeviceFailure(NOT_CONNECTED_MESSAGE).to_notice()
                return False
            self.sent_commands.append(command)
            self.status_message = f"正在取出 {command}..."
        LOG.info("Simulated box received command '%s'", command)

        def _done() -> None:
            with self._lock:
                if self.is_connected:
                    self.status_message = STATUS_CONNECTED

        self._later(self.dispense_delay, _done)
        return True

    def dismiss_notice(self) -> None:
        self.notice = None

    def close(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
