from __future__ import annotations

import signal
from typing import Callable, Optional

from .constants import (
    CLEAR_SCREEN,
    EXIT_FATAL,
    EXIT_OK,
    INIT_BLANK_LINES,
    INIT_SETTLE_S,
    LF,
    LOOP_PAUSE_S,
    MAX_RETRIES,
    RECONNECT_DELAY_S,
    RETRY_DELAY_S,
    WATCHDOG_TIMEOUT_S,
)
from .errors import NotConnected, OpenFailed, SenderError
from .logging import SenderLogger
from .notify import Notifier
from .serialio import LinkHandle, SerialLink
from .state import Phase, RunState, TransmissionConfig
from .transmitter import Transmitter
from .util import now_s


class Watchdog:
    """Low-volume heartbeat proving the send loop is still executing."""
    def __init__(self, logger: SenderLogger, interval_s: float = WATCHDOG_TIMEOUT_S,
                 clock: Callable[[], float] = now_s):
        self.logger = logger
        self.interval_s = float(interval_s)
        self._clock = clock
        self._last = clock()

    def tick(self):
        now = self._clock()
        if now - self._last > self.interval_s:
            self.logger.info("Watchdog: system alive")
            self._last = now


class ReconnectSupervisor:
    """Owns the serial link for the life of the process.

    Lifecycle: Closed -> Opening -> Initializing -> Streaming, then back to
    Closed on failure or reload, or to Terminated on stop.

    Open failures before the first working session are budgeted: after
    max_retries consecutive failures the run ends with EXIT_FATAL. Once a
    session has streamed, the device may come and go for hours, so later open
    failures are retried indefinitely."""
    def __init__(
        self,
        config: TransmissionConfig,
        state: RunState,
        logger: SenderLogger,
        link: Optional[SerialLink] = None,
        transmitter: Optional[Transmitter] = None,
        notifier: Optional[Notifier] = None,
        sleep: Optional[Callable[[float], object]] = None,
        clock: Callable[[], float] = now_s,
        max_retries: int = MAX_RETRIES,
        retry_delay_s: float = RETRY_DELAY_S,
        reconnect_delay_s: float = RECONNECT_DELAY_S,
        settle_s: float = INIT_SETTLE_S,
        loop_pause_s: float = LOOP_PAUSE_S,
        watchdog_interval_s: float = WATCHDOG_TIMEOUT_S,
    ):
        self.config = config
        self.state = state
        self.logger = logger
        self.link = link if link is not None else SerialLink(config.port, config.baudrate, logger=logger)
        self.notifier = notifier if notifier is not None else Notifier(False, None, None)
        self._sleep = sleep if sleep is not None else state.wait
        self.watchdog = Watchdog(logger, interval_s=watchdog_interval_s, clock=clock)
        if transmitter is None:
            transmitter = Transmitter(state, logger, sleep=self._sleep, heartbeat=self.watchdog.tick)
        self.transmitter = transmitter

        self.max_retries = int(max_retries)
        self.retry_delay_s = float(retry_delay_s)
        self.reconnect_delay_s = float(reconnect_delay_s)
        self.settle_s = float(settle_s)
        self.loop_pause_s = float(loop_pause_s)

        # Set after a lost-connection alert; cleared by the next good pass.
        self._loss_alerted = False
        # Consecutive open failures after the first session; only reported.
        self._reconnect_failures = 0

    def run(self) -> int:
        """Drive the link until stopped. Returns the process exit status."""
        cfg = self.config
        self.logger.info("=== Minitel sender starting ===")
        self.logger.info(
            f"Port: {cfg.port}, File: {cfg.source_path}, Delay: {cfg.delay_us}us",
            baud=cfg.baudrate,
            one_shot=cfg.one_shot,
        )

        exit_code = EXIT_OK
        while self.state.keep_running:
            self._report_signals()
            self.state.phase = Phase.OPENING
            try:
                handle = self.link.open()
            except OpenFailed:
                if self._on_open_failed():
                    exit_code = EXIT_FATAL
                    break
                continue

            self.state.retry_count = 0
            self._reconnect_failures = 0
            with handle:
                self.state.phase = Phase.INITIALIZING
                try:
                    self.init_display(handle)
                except SenderError as exc:
                    self.logger.error(f"Display init failed: {exc}")
                    self._close(handle)
                    self._sleep(self.retry_delay_s)
                    continue

                self.state.reconnect_evt.clear()
                self.state.session_established = True
                self._stream(handle)
                self._report_signals()
                self._close(handle)

            if self.state.keep_running and self.state.reconnect_needed:
                self.state.phase = Phase.RECONNECTING
                self.state.reconnects += 1
                self.logger.info(f"Reconnecting in {self.reconnect_delay_s:g}s...")
                self._sleep(self.reconnect_delay_s)

        self._report_signals()
        self.state.phase = Phase.TERMINATED
        if exit_code == EXIT_OK:
            self.logger.info("=== Clean shutdown ===", passes=self.state.passes, bytes_total=self.state.bytes_total)
        return exit_code

    def _on_open_failed(self) -> bool:
        """Account for a failed open. Returns True when the run must end fatally."""
        self.state.phase = Phase.CLOSED
        if not self.state.session_established:
            self.state.retry_count += 1
            if self.state.retry_count >= self.max_retries:
                self.logger.fatal("Too many failed attempts, giving up", retries=self.state.retry_count)
                self.notifier.send(
                    "Minitel sender stopped",
                    f"Could not open {self.config.port} after {self.state.retry_count} attempts",
                    priority=1,
                )
                return True
            self.logger.warn(
                f"Attempt {self.state.retry_count}/{self.max_retries}, waiting {self.retry_delay_s:g}s..."
            )
        else:
            # Kept below max_retries: reaching the budget is only fatal before the first session.
            self.state.retry_count = min(self.state.retry_count + 1, self.max_retries - 1)
            self._reconnect_failures += 1
            self.logger.warn(
                f"Reconnect attempt failed ({self._reconnect_failures} in a row), waiting {self.retry_delay_s:g}s..."
            )
        self._sleep(self.retry_delay_s)
        return False

    def init_display(self, handle: LinkHandle):
        """Clear the screen, let the display settle, then move the cursor down."""
        if not handle.is_alive():
            raise NotConnected("Serial port not connected")
        handle.write(CLEAR_SCREEN)
        self._sleep(self.settle_s)
        handle.write(LF * INIT_BLANK_LINES)
        self.logger.info("Minitel screen initialized")

    def _stream(self, handle: LinkHandle):
        cfg = self.config
        self.state.phase = Phase.STREAMING
        while self.state.keep_running and not self.state.reconnect_needed:
            self._report_signals()
            self.watchdog.tick()
            try:
                sent = self.transmitter.send(handle, cfg.source_path, cfg.delay_us)
            except SenderError as exc:
                self.logger.error(str(exc))
                self.logger.error("Send failed, reconnecting...")
                self.state.request_reconnect()
                if not self._loss_alerted:
                    self._loss_alerted = True
                    self.notifier.send("Minitel sender", f"Transmission to {cfg.port} failed: {exc}")
                return

            self._loss_alerted = False
            self.state.passes += 1
            self.state.bytes_total += sent

            if cfg.one_shot:
                self.logger.info("One-shot mode, stopping")
                self.state.request_stop()
                return
            self._sleep(self.loop_pause_s)

    def _close(self, handle: LinkHandle):
        if not handle.valid:
            return
        handle.close()
        self.state.phase = Phase.CLOSED
        self.logger.info("Serial port closed")

    def _report_signals(self):
        """Log signals recorded by the handlers since the last call."""
        pending = self.state.pending_signals
        while pending:
            signum = pending.popleft()
            if signum == getattr(signal, "SIGHUP", None):
                self.logger.info("SIGHUP received, reconnecting")
            else:
                self.logger.info(f"Signal {signum} received, shutting down")
