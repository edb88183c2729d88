from __future__ import annotations

import errno
import os
from typing import Optional

try:
    import serial  # pyserial
except ImportError:  # pragma: no cover
    serial = None

from .constants import BAUDRATE, READ_TIMEOUT_S
from .errors import NotConnected, OpenFailed, WriteFailed
from .logging import SenderLogger

# pyserial's SerialException derives from IOError, so OSError covers both.
_SERIAL_ERRORS = (OSError, ValueError)


class LinkHandle:
    """An open serial device.

    Owned by whoever called SerialLink.open(). Once closed the handle is inert:
    writes raise NotConnected and the liveness probe reports False. Usable as a
    context manager so the device is released on every exit path."""
    def __init__(self, ser, port: str, logger: Optional[SenderLogger] = None):
        self._ser = ser
        self.port = port
        self.logger = logger

    @property
    def valid(self) -> bool:
        return self._ser is not None and bool(getattr(self._ser, "is_open", True))

    def is_alive(self) -> bool:
        """Zero-length write probe on the descriptor.

        Only a bad-descriptor error counts as dead; anything else is reported
        alive and left for the next real write to catch."""
        if not self.valid:
            return False
        try:
            fd = self._ser.fileno()
        except _SERIAL_ERRORS:
            return False
        try:
            os.write(fd, b"")
        except OSError as e:
            if e.errno == errno.EBADF:
                return False
        return True

    def write(self, data: bytes) -> int:
        """Blocking write of all of data."""
        if not self.valid:
            raise NotConnected(f"{self.port}: link is closed")
        try:
            n = self._ser.write(data)
        except _SERIAL_ERRORS as exc:
            raise WriteFailed(f"{self.port}: {exc}") from exc
        if n is not None and n != len(data):
            raise WriteFailed(f"{self.port}: short write ({n}/{len(data)} bytes)")
        return len(data)

    def close(self):
        """Release the device. Safe to call any number of times."""
        ser, self._ser = self._ser, None
        if ser is None:
            return
        try:
            ser.close()
        except _SERIAL_ERRORS as e:
            # The descriptor is gone either way; nothing left to retry.
            if self.logger is not None:
                self.logger.warn(f"Error while closing {self.port}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class SerialLink:
    """Opens and configures the serial device for a single port.

    pyserial opens the device non-blocking, applies raw mode (no echo, no line
    buffering, no signal characters) at the requested speed with a read
    timeout, and closes the descriptor itself if configuration fails. Writes
    through the resulting handle block until every byte is accepted."""
    def __init__(self, port: str, baudrate: int = BAUDRATE, logger: Optional[SenderLogger] = None,
                 serial_factory=None):
        self.port = port
        self.baudrate = int(baudrate)
        self.logger = logger
        self._factory = serial_factory

    def open(self) -> LinkHandle:
        """Open the port, raising OpenFailed if it is absent, busy or unconfigurable."""
        factory = self._factory
        if factory is None:
            if serial is None:  # pragma: no cover
                raise OpenFailed("pyserial is not installed. Install it with: pip install pyserial")
            factory = serial.Serial
        try:
            ser = factory(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=8,
                parity="N",
                stopbits=1,
                timeout=READ_TIMEOUT_S,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
        except _SERIAL_ERRORS as exc:
            msg = f"Cannot open {self.port}: {exc}"
            if self.logger is not None:
                self.logger.error(msg)
            raise OpenFailed(msg) from exc

        if self.logger is not None:
            self.logger.info(f"Serial port {self.port} opened", baud=self.baudrate)
        return LinkHandle(ser, self.port, logger=self.logger)

    @staticmethod
    def is_alive(handle: Optional[LinkHandle]) -> bool:
        return handle is not None and handle.is_alive()

    @staticmethod
    def close(handle: Optional[LinkHandle]):
        if handle is not None:
            handle.close()

    @staticmethod
    def write_raw(handle: Optional[LinkHandle], data: bytes) -> int:
        if handle is None:
            raise NotConnected("no open link")
        return handle.write(data)
