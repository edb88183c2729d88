from __future__ import annotations

import signal

from .state import RunState

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalBridge:
    """Turns process signals into RunState flags.

    SIGINT/SIGTERM request a stop, SIGHUP requests a reconnect. SIGPIPE is
    ignored so a vanished device shows up as a failed write instead of
    killing the process. Handlers only record the signal and set events; the
    supervisor polls them and does the logging."""
    def __init__(self, state: RunState):
        self.state = state
        self._previous = {}

    def install(self):
        for signum in STOP_SIGNALS:
            self._previous[signum] = signal.signal(signum, self._on_stop)
        if hasattr(signal, "SIGHUP"):
            self._previous[signal.SIGHUP] = signal.signal(signal.SIGHUP, self._on_reload)
        if hasattr(signal, "SIGPIPE"):
            self._previous[signal.SIGPIPE] = signal.signal(signal.SIGPIPE, signal.SIG_IGN)

    def restore(self):
        """Put back whatever handlers were active before install()."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def _on_stop(self, signum, frame=None):
        self.state.pending_signals.append(int(signum))
        self.state.request_stop()

    def _on_reload(self, signum, frame=None):
        self.state.pending_signals.append(int(signum))
        self.state.request_reconnect()
