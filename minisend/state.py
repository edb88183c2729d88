from __future__ import annotations

import enum
import threading
from collections import deque
from dataclasses import dataclass, field

from .constants import BAUDRATE, DEFAULT_DELAY_US, DEFAULT_SOURCE, SERIAL_PORT


class Phase(enum.Enum):
    CLOSED = "closed"
    OPENING = "opening"
    INITIALIZING = "initializing"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class TransmissionConfig:
    """What to send, where, and how fast. Built once at startup."""
    source_path: str = DEFAULT_SOURCE
    port: str = SERIAL_PORT
    delay_us: int = DEFAULT_DELAY_US
    one_shot: bool = False
    baudrate: int = BAUDRATE

    @property
    def delay_s(self) -> float:
        return self.delay_us / 1_000_000.0


@dataclass
class RunState:
    """Mutable runtime state for the supervisor.

    Signal handlers only touch stop_evt, reconnect_evt and pending_signals;
    everything else belongs to the supervisor thread."""
    stop_evt: threading.Event = field(default_factory=threading.Event)
    reconnect_evt: threading.Event = field(default_factory=threading.Event)
    pending_signals: deque = field(default_factory=deque)
    retry_count: int = 0
    phase: Phase = Phase.CLOSED
    session_established: bool = False

    passes: int = 0
    bytes_total: int = 0
    reconnects: int = 0

    @property
    def keep_running(self) -> bool:
        return not self.stop_evt.is_set()

    @property
    def reconnect_needed(self) -> bool:
        return self.reconnect_evt.is_set()

    def request_stop(self):
        self.stop_evt.set()

    def request_reconnect(self):
        self.reconnect_evt.set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to seconds; returns early (True) once a stop is requested."""
        if seconds <= 0:
            return self.stop_evt.is_set()
        return self.stop_evt.wait(seconds)
