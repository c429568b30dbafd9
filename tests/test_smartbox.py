from partsbox.errors import ErrorKind
from partsbox.smartbox.simulator import (
    CATEGORIES,
    NOT_CONNECTED_MESSAGE,
    STATUS_CONNECTED,
    STATUS_CONNECTING,
    STATUS_DISCONNECTED,
    SimulatedPartsBox,
)


def test_catalogue():
    assert CATEGORIES == ("電阻", "BJT", "MOS")
    assert SimulatedPartsBox.parts_in("BJT") == ("2N3904", "BC547", "S8050")
    assert SimulatedPartsBox.parts_in("二極體") == ()


def test_toggle_connection():
    box = SimulatedPartsBox(connect_delay=0, dispense_delay=0)
    assert box.status_message == STATUS_DISCONNECTED
    box.toggle_connection()
    assert box.is_connected
    assert box.status_message == STATUS_CONNECTED
    box.toggle_connection()
    assert not box.is_connected
    assert box.status_message == STATUS_DISCONNECTED


def test_connect_delay_shows_connecting_status():
    box = SimulatedPartsBox(connect_delay=60)
    try:
        box.connect()
        assert box.status_message == STATUS_CONNECTING
        assert not box.is_connected
    finally:
        box.close()


def test_send_requires_connection():
    box = SimulatedPartsBox(connect_delay=0, dispense_delay=0)
    assert box.send("1K") is False
    assert box.notice.kind == ErrorKind.DEVICE_FAILURE
    assert box.notice.message == NOT_CONNECTED_MESSAGE
    box.dismiss_notice()
    assert box.notice is None
    assert box.sent_commands == []


def test_empty_command_is_ignored():
    box = SimulatedPartsBox(connect_delay=0, dispense_delay=0)
    box.connect()
    assert box.send("") is False
    assert box.notice is None
    assert box.status_message == STATUS_CONNECTED


def test_send_shows_busy_status_until_done():
    box = SimulatedPartsBox(connect_delay=0, dispense_delay=60)
    try:
        box.connect()
        assert box.send("IRF540N") is True
        assert box.status_message == "正在取出 IRF540N..."
        assert box.sent_commands == ["IRF540N"]
    finally:
        box.close()


def test_send_restores_connected_status():
    box = SimulatedPartsBox(connect_delay=0, dispense_delay=0)
    box.connect()
    box.send("2K")
    assert box.status_message == STATUS_CONNECTED
