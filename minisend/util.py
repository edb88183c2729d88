from __future__ import annotations

import time


def now_s() -> float:
    """Monotonic clock in seconds."""
    return time.monotonic()


def count_wraps(forwarded: int, chars_per_line: int) -> int:
    """Number of CR+LF wraps a pass of `forwarded` bytes produces."""
    if chars_per_line <= 0:
        return 0
    return forwarded // chars_per_line
