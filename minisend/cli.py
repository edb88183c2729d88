from __future__ import annotations

import json
import sys

from .config import (
    apply_toml_config,
    build_arg_parser,
    get_notifier_config,
    resolved_config_dict,
    transmission_config_from,
)
from .constants import VERSION
from .doctor import run_doctor, run_self_test
from .logging import SenderLogger
from .notify import Notifier
from .serialio import serial
from .signals import SignalBridge
from .state import RunState
from .supervisor import ReconnectSupervisor


def main(argv=None):
    """CLI entry point. Parses args, wires the supervisor and runs it to completion."""
    if argv is None:
        argv = sys.argv[1:]
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    # TOML values only fill options the command line left out.
    try:
        apply_toml_config(args, argv)
    except (OSError, ValueError) as e:
        print(f"ERROR: cannot load config {args.config}: {e}", file=sys.stderr)
        return 2

    if args.version:
        print(VERSION)
        return 0

    # Print resolved configuration and exit (does not require pyserial).
    if args.print_config:
        print(json.dumps(resolved_config_dict(args), indent=2, sort_keys=True))
        return 0

    if serial is None:  # pragma: no cover
        print("ERROR: pyserial is not installed. Install it with: pip install pyserial", file=sys.stderr)
        return 2

    cfg = transmission_config_from(args)
    logger = SenderLogger(args.log_file, enable_json=bool(args.json))

    if args.doctor:
        return run_doctor(cfg)

    if args.self_test:
        return run_self_test(cfg, logger)

    state = RunState()
    bridge = SignalBridge(state)
    bridge.install()
    try:
        sup = ReconnectSupervisor(cfg, state, logger, notifier=Notifier(**get_notifier_config()))
        exit_code = sup.run()
    finally:
        bridge.restore()
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
