#!/usr/bin/env python3
#
# Minitel text sender
#
# Streams a text file, character by character, to a Minitel display over a
# serial adapter. Built to run unattended for hours: the serial port is
# reopened whenever the adapter disappears, and SIGHUP forces a reconnect.
#

from __future__ import annotations

from minisend.cli import main
from minisend.config import build_arg_parser, resolved_config_dict  # noqa: F401
from minisend.state import RunState, TransmissionConfig  # noqa: F401
from minisend.supervisor import ReconnectSupervisor  # noqa: F401

if __name__ == "__main__":
    raise SystemExit(main())
