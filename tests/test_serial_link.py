import errno

import pytest

from minisend.errors import NotConnected, OpenFailed, WriteFailed
from minisend.serialio import LinkHandle, SerialLink

from conftest import CapturingLogger, FakeSerial


def test_open_configures_raw_link_at_requested_speed():
    made = []

    def factory(**kw):
        s = FakeSerial(**kw)
        made.append(s)
        return s

    logger = CapturingLogger()
    link = SerialLink("/dev/ttyUSB0", 4800, logger=logger, serial_factory=factory)
    handle = link.open()
    try:
        kw = made[0].kwargs
        assert kw["port"] == "/dev/ttyUSB0"
        assert kw["baudrate"] == 4800
        assert kw["timeout"] == 1.0
        assert kw["xonxoff"] is False and kw["rtscts"] is False
        assert handle.valid
        assert ("INFO", "Serial port /dev/ttyUSB0 opened") in logger.entries
    finally:
        handle.close()


def test_open_failure_is_reported_as_open_failed():
    def factory(**kw):
        raise OSError(errno.ENOENT, "No such file or directory")

    logger = CapturingLogger()
    link = SerialLink("/dev/ttyUSB9", logger=logger, serial_factory=factory)
    with pytest.raises(OpenFailed) as ei:
        link.open()
    assert "/dev/ttyUSB9" in str(ei.value)
    assert logger.entries[-1][0] == "ERROR"


def test_configuration_failure_is_open_failed():
    def factory(**kw):
        raise ValueError("Invalid baud rate")

    with pytest.raises(OpenFailed):
        SerialLink("/dev/ttyUSB0", serial_factory=factory).open()


def test_close_is_idempotent_and_closes_device_once():
    ser = FakeSerial()
    handle = LinkHandle(ser, "/dev/fake")
    handle.close()
    handle.close()
    SerialLink.close(handle)
    SerialLink.close(None)
    assert ser.close_calls == 1
    assert handle.valid is False


def test_probe_false_on_missing_or_closed_handle():
    assert SerialLink.is_alive(None) is False
    ser = FakeSerial()
    handle = LinkHandle(ser, "/dev/fake")
    assert SerialLink.is_alive(handle) is True
    handle.close()
    assert SerialLink.is_alive(handle) is False


def test_probe_detects_bad_descriptor():
    ser = FakeSerial()
    handle = LinkHandle(ser, "/dev/fake")
    ser.unplug()
    assert handle.is_alive() is False
    handle.close()


def test_probe_writes_nothing():
    ser = FakeSerial()
    with LinkHandle(ser, "/dev/fake") as handle:
        assert handle.is_alive()
    assert ser.writes == []
    assert ser.close_calls == 1


def test_write_after_close_raises_not_connected():
    handle = LinkHandle(FakeSerial(), "/dev/fake")
    handle.close()
    with pytest.raises(NotConnected):
        handle.write(b"A")
    with pytest.raises(NotConnected):
        SerialLink.write_raw(None, b"A")


def test_write_failure_wrapped():
    class Broken(FakeSerial):
        def write(self, b):
            raise OSError(errno.EIO, "Input/output error")

    handle = LinkHandle(Broken(), "/dev/fake")
    with pytest.raises(WriteFailed) as ei:
        SerialLink.write_raw(handle, b"A")
    assert isinstance(ei.value.__cause__, OSError)
    handle.close()


def test_short_write_is_a_failure():
    class Short(FakeSerial):
        def write(self, b):
            return 0

    handle = LinkHandle(Short(), "/dev/fake")
    with pytest.raises(WriteFailed):
        handle.write(b"AB")
    handle.close()


def test_close_error_is_logged_not_raised():
    class Sticky(FakeSerial):
        def close(self):
            super().close()
            raise OSError(errno.EIO, "Input/output error")

    logger = CapturingLogger()
    handle = LinkHandle(Sticky(), "/dev/fake", logger=logger)
    handle.close()
    handle.close()
    assert [lvl for lvl, _ in logger.entries] == ["WARN"]
