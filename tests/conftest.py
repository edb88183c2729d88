import builtins
import errno
import importlib.util
import os
import sys
from pathlib import Path

from minisend.logging import SenderLogger

def load_module():
    script = Path(__file__).resolve().parents[1] / "minitel-sender.py"
    spec = importlib.util.spec_from_file_location("minitel_sender", script)
    mod = importlib.util.module_from_spec(spec)
    sys.modules["minitel_sender"] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod

# Expose helper for tests without explicit imports.
builtins.load_module = load_module


class CapturingLogger(SenderLogger):
    """SenderLogger that keeps (level, message) pairs instead of writing them."""
    def __init__(self):
        super().__init__(None)
        self.entries = []

    def log(self, level, message, **fields):
        self.entries.append((level, message))

    def levels(self):
        return [lvl for lvl, _ in self.entries]

    def messages(self):
        return [msg for _, msg in self.entries]


class FakeSerial:
    """Serial-like object capturing writes.

    Backed by /dev/null so the liveness probe has a real descriptor.
    fail_after makes every write past that count raise EIO; on_write is called
    after each accepted write."""
    def __init__(self, fail_after=None, on_write=None, **kwargs):
        self.kwargs = kwargs
        self.writes = []
        self.is_open = True
        self.close_calls = 0
        self.fail_after = fail_after
        self.on_write = on_write
        self._fd = os.open(os.devnull, os.O_WRONLY)

    def fileno(self):
        return self._fd

    def write(self, b):
        if self.fail_after is not None and len(self.writes) >= self.fail_after:
            raise OSError(errno.EIO, "Input/output error")
        self.writes.append(bytes(b))
        if self.on_write is not None:
            self.on_write(self)
        return len(b)

    def unplug(self):
        """Invalidate the descriptor the way a vanished adapter does."""
        os.close(self._fd)
        self._fd = -1

    def close(self):
        self.close_calls += 1
        if self.is_open and self._fd >= 0:
            os.close(self._fd)
        self.is_open = False

    @property
    def wire(self):
        return b"".join(self.writes)
