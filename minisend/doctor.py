from __future__ import annotations

import os
import tempfile

from .constants import (
    CHARS_PER_LINE,
    EXIT_DIAG_FAILED,
    EXIT_OK,
    LF,
)
from .errors import SenderError
from .logging import SenderLogger
from .serialio import SerialLink
from .state import RunState, TransmissionConfig
from .supervisor import ReconnectSupervisor
from .transmitter import Transmitter
from .util import count_wraps

SELF_TEST_PATTERN = (
    b"MINITEL SENDER SELF-TEST "
    + bytes(range(0x21, 0x7F))
    + b" 0123456789"
)


def inspect_source(path: str) -> dict:
    """Read the source once and summarise what a pass would put on the wire."""
    with open(path, "rb") as f:
        data = f.read()
    line_feeds = data.count(LF)
    forwarded = len(data) - line_feeds
    return {
        "size": len(data),
        "line_feeds": line_feeds,
        "forwarded": forwarded,
        "wraps": count_wraps(forwarded, CHARS_PER_LINE),
    }


def run_doctor(cfg: TransmissionConfig, link: SerialLink = None) -> int:
    """Check the source file and serial port. Never writes to the device."""
    print("Doctor Mode (safe):")
    print("  - Nothing is written to the display.")
    print()
    ok = True

    print(f"Source file: {cfg.source_path}")
    try:
        info = inspect_source(cfg.source_path)
    except OSError as e:
        print(f"  FAIL cannot read: {e.strerror or e}")
        ok = False
    else:
        print(f"  OK   {info['size']} bytes, {info['line_feeds']} line feeds dropped, "
              f"{info['forwarded']} forwarded, {info['wraps']} wraps")
        if cfg.delay_us:
            seconds = info["forwarded"] * cfg.delay_us / 1_000_000.0
            print(f"       one pass takes at least {seconds:.1f}s at {cfg.delay_us}us/char")

    print(f"Serial port: {cfg.port} @ {cfg.baudrate} baud")
    if not os.path.exists(cfg.port):
        print("  WARN device node does not exist (adapter unplugged?)")
    elif not os.access(cfg.port, os.R_OK | os.W_OK):
        print("  WARN no read/write permission (add the user to the 'dialout' group)")

    link = link if link is not None else SerialLink(cfg.port, cfg.baudrate)
    try:
        handle = link.open()
    except SenderError as e:
        print(f"  FAIL {e}")
        ok = False
    else:
        with handle:
            alive = handle.is_alive()
            print(f"  {'OK  ' if alive else 'FAIL'} opened, liveness probe {'passed' if alive else 'failed'}")
            ok = ok and alive

    print()
    print("Doctor: all checks passed." if ok else "Doctor: some checks failed.")
    return EXIT_OK if ok else EXIT_DIAG_FAILED


def run_self_test(cfg: TransmissionConfig, logger: SenderLogger, link: SerialLink = None,
                  pattern_path: str = None) -> int:
    """Initialise the display and send a short built-in pattern once."""
    state = RunState()
    link = link if link is not None else SerialLink(cfg.port, cfg.baudrate, logger=logger)
    sup = ReconnectSupervisor(cfg, state, logger, link=link)
    tx = Transmitter(state, logger, sleep=state.wait)

    try:
        with tempfile.TemporaryDirectory(prefix="minisend-") as tmp:
            path = pattern_path
            if path is None:
                path = os.path.join(tmp, "self_test.txt")
                with open(path, "wb") as f:
                    f.write(SELF_TEST_PATTERN)
            with link.open() as handle:
                sup.init_display(handle)
                sent = tx.send(handle, path, cfg.delay_us)
    except SenderError as e:
        logger.error(f"Self-test failed: {e}")
        print("Self-test failed.")
        return EXIT_DIAG_FAILED

    print(f"Self-test complete: {sent} bytes sent.")
    return EXIT_OK
