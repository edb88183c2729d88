from __future__ import annotations

VERSION = "1.0.0"

# Serial line
SERIAL_PORT = "/dev/ttyUSB0"
BAUDRATE = 4800
READ_TIMEOUT_S = 1.0

# Display geometry
CHARS_PER_LINE = 80
LINES_SKIP = 70
INIT_BLANK_LINES = 10

CLEAR_SCREEN = b"\x0c"
CR = b"\r"
LF = b"\n"
CRLF = b"\r\n"

# Pacing. DEFAULT_DELAY_US is what runs when -d is not given; QUICK_DELAY_US is
# the faster value the old help text advertised. Keep them separate.
DEFAULT_DELAY_US = 40000
QUICK_DELAY_US = 1000

# Liveness is re-probed every PROBE_EVERY forwarded bytes.
PROBE_EVERY = 100

# Supervisor timing (seconds)
MAX_RETRIES = 5
RETRY_DELAY_S = 5.0
RECONNECT_DELAY_S = 5.0
INIT_SETTLE_S = 0.3
LOOP_PAUSE_S = 1.0
WATCHDOG_TIMEOUT_S = 60.0

DEFAULT_SOURCE = "text.txt"
LOG_FILE = "/tmp/minitel.log"

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_DIAG_FAILED = 2


USAGE_EXAMPLES = f"""\
Usage examples:
  # Loop text.txt forever on the default port
  python minitel-sender.py

  # Send a file once, quickly, then exit
  python minitel-sender.py -f poem.txt -d {QUICK_DELAY_US} -o

  # Other adapter, JSON console output, custom log file
  python minitel-sender.py -p /dev/ttyUSB1 --json --log-file /var/log/minitel.log

  # Check the port and source file without writing to the display
  python minitel-sender.py --doctor -p /dev/ttyUSB0 -f text.txt

Signals:
  SIGINT/SIGTERM  stop cleanly (exit 0)
  SIGHUP          close and reopen the serial port
"""
