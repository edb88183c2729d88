from __future__ import annotations

from functools import partial
from typing import Callable, Optional

from .constants import CHARS_PER_LINE, CR, CRLF, LF, LINES_SKIP, PROBE_EVERY
from .errors import NotConnected, SourceUnreadable, WriteFailed
from .logging import SenderLogger
from .serialio import LinkHandle, SerialLink
from .state import RunState

_LF = LF[0]
_READ_CHUNK = 4096


class Transmitter:
    """Streams one pass of a text file to an open link.

    Line feeds in the source are dropped; the display wraps every
    chars_per_line forwarded bytes instead. Each forwarded byte is followed by
    the pacing delay. The transmitter never retries and never closes the link:
    any failure is raised to the caller."""
    def __init__(
        self,
        state: RunState,
        logger: SenderLogger,
        chars_per_line: int = CHARS_PER_LINE,
        lines_skip: int = LINES_SKIP,
        probe_every: int = PROBE_EVERY,
        sleep: Optional[Callable[[float], object]] = None,
        heartbeat: Optional[Callable[[], object]] = None,
    ):
        self.state = state
        self.logger = logger
        self.chars_per_line = int(chars_per_line)
        self.lines_skip = int(lines_skip)
        self.probe_every = int(probe_every)
        self._sleep = sleep if sleep is not None else state.wait
        self._heartbeat = heartbeat

    def send(self, handle: Optional[LinkHandle], source_path: str, delay_us: int) -> int:
        """Send source_path once and return the number of bytes forwarded.

        Raises:
            NotConnected: the link failed its liveness probe before starting.
            SourceUnreadable: the file could not be opened or read.
            WriteFailed: a write failed or the link was lost mid-stream.
        """
        if not SerialLink.is_alive(handle):
            raise NotConnected("Serial port not connected")

        try:
            f = open(source_path, "rb")
        except OSError as exc:
            raise SourceUnreadable(f"Cannot open {source_path}: {exc.strerror or exc}") from exc

        delay_s = max(0, int(delay_us)) / 1_000_000.0
        sent = 0
        cursor = 0
        stop = self.state.stop_evt

        with f:
            try:
                for chunk in iter(partial(f.read, _READ_CHUNK), b""):
                    for value in chunk:
                        if stop.is_set():
                            self.logger.info(f"Transmission interrupted after {sent} bytes")
                            return sent
                        if value == _LF:
                            continue
                        if sent % self.probe_every == 0 and not handle.is_alive():
                            raise WriteFailed("Connection lost during send")

                        handle.write(bytes((value,)))
                        sent += 1
                        cursor += 1
                        if cursor >= self.chars_per_line:
                            handle.write(CRLF)
                            cursor = 0

                        if self._heartbeat is not None:
                            self._heartbeat()
                        self._sleep(delay_s)
            except OSError as exc:
                raise SourceUnreadable(f"Error reading {source_path}: {exc.strerror or exc}") from exc

        if stop.is_set():
            self.logger.info(f"Transmission interrupted after {sent} bytes")
            return sent

        # Scroll the finished text off the display.
        handle.write(CR)
        for _ in range(self.lines_skip):
            if stop.is_set():
                break
            handle.write(LF)

        self.logger.info(f"File sent: {sent} bytes", bytes_sent=sent)
        return sent
