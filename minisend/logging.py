from __future__ import annotations

import json
import sys
import threading
import time
from typing import Optional

LEVELS = ("INFO", "WARN", "ERROR", "FATAL")


class SenderLogger:
    """Append-only log sink.

    Each entry goes to the log file as ``[YYYY-MM-DD HH:MM:SS] LEVEL: message``
    (a format existing log consumers rely on) and is echoed to stdout, either in
    the same text form or as one JSON object per line."""
    def __init__(self, log_path: Optional[str], enable_json: bool = False, stream=None):
        """Create a logger.

        Args:
            log_path: File the entries are appended to. None disables the file.
            enable_json: Emit JSON lines on the console instead of text.
            stream: Console stream (defaults to stdout at call time).
        """
        self.log_path = log_path
        self.enable_json = enable_json
        self._stream = stream
        self._lock = threading.Lock()

    def log(self, level: str, message: str, **fields):
        """Record one entry at the given severity."""
        level = level.upper()
        if level not in LEVELS:
            raise ValueError(f"unknown log level: {level}")
        t = time.time()
        stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(t))
        line = f"[{stamp}] {level}: {message}"

        with self._lock:
            self._append(line)
            out = self._stream if self._stream is not None else sys.stdout
            if self.enable_json:
                ts_iso = stamp + f".{int((t - int(t)) * 1000):03d}"
                payload = {"ts": t, "ts_iso": ts_iso, "level": level, "message": message, **fields}
                print(json.dumps(payload, sort_keys=True, default=str), file=out, flush=True)
            else:
                print(line, file=out, flush=True)

    def _append(self, line: str):
        # Reopened per entry so external rotation never leaves a stale handle.
        if not self.log_path:
            return
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            pass

    def info(self, message: str, **fields):
        self.log("INFO", message, **fields)

    def warn(self, message: str, **fields):
        self.log("WARN", message, **fields)

    def error(self, message: str, **fields):
        self.log("ERROR", message, **fields)

    def fatal(self, message: str, **fields):
        self.log("FATAL", message, **fields)
