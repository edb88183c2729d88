from __future__ import annotations

import argparse
import os
from argparse import RawDescriptionHelpFormatter

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib

from .constants import (
    BAUDRATE,
    DEFAULT_DELAY_US,
    DEFAULT_SOURCE,
    LOG_FILE,
    SERIAL_PORT,
    USAGE_EXAMPLES,
)
from .state import TransmissionConfig


def get_bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def get_notifier_config():
    return {
        "enabled": get_bool_env("MINISEND_NOTIFY", False),
        "pushover_token": os.getenv("PUSHOVER_TOKEN"),
        "pushover_user": os.getenv("PUSHOVER_USER"),
    }


def load_toml_config(path: str) -> dict:
    """Load TOML configuration from path."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _get_cfg(cfg: dict, section: str, key: str, default=None):
    sec = cfg.get(section, {})
    if not isinstance(sec, dict):
        return default
    return sec.get(key, default)


def config_defaults_from(cfg: dict) -> dict:
    """Map TOML config into argparse defaults."""
    return {
        "port": _get_cfg(cfg, "serial", "port", SERIAL_PORT),
        "baud": _get_cfg(cfg, "serial", "baud", BAUDRATE),
        "file": _get_cfg(cfg, "transmission", "file", DEFAULT_SOURCE),
        "delay": _get_cfg(cfg, "transmission", "delay_us", DEFAULT_DELAY_US),
        "one_shot": _get_cfg(cfg, "transmission", "one_shot", False),
        "log_file": _get_cfg(cfg, "logging", "log_file", LOG_FILE),
        "json": _get_cfg(cfg, "logging", "json", False),
    }


def resolved_config_dict(args) -> dict:
    return {
        "serial": {"port": args.port, "baud": args.baud},
        "transmission": {
            "file": args.file,
            "delay_us": args.delay,
            "one_shot": bool(args.one_shot),
        },
        "logging": {
            "log_file": args.log_file,
            "json": bool(args.json),
        },
    }


def apply_toml_config(args, argv) -> None:
    """Backfill values from --config for every option not given on the command line."""
    path = getattr(args, "config", None)
    if not path:
        return
    cfg = load_toml_config(path)
    explicit = _explicit_dests(argv)
    for k, v in config_defaults_from(cfg).items():
        if k not in explicit:
            setattr(args, k, v)


def _explicit_dests(argv) -> set:
    """Options the command line actually set, however argparse spelled them.

    Re-parses with every backfillable default set to None, so abbreviated
    long options and grouped short flags are seen the same way as full ones."""
    keys = config_defaults_from({})
    bare = build_arg_parser(defaults=dict.fromkeys(keys)).parse_args(argv)
    return {k for k in keys if getattr(bare, k) is not None}


def _delay_us(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid delay: {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError("delay must be >= 0 microseconds")
    return value


def build_arg_parser(defaults=None):
    """Construct the CLI argument parser."""
    ap = argparse.ArgumentParser(
        prog="minitel-sender",
        description="Stream a text file to a Minitel over a serial link, reconnecting as needed.",
        epilog=USAGE_EXAMPLES,
        formatter_class=RawDescriptionHelpFormatter,
    )
    if defaults is None:
        defaults = config_defaults_from({})
    ap.set_defaults(**defaults)
    ap.add_argument("-f", "--file", help=f"Source text file (default: {DEFAULT_SOURCE}).")
    ap.add_argument("-d", "--delay", type=_delay_us, metavar="DELAY",
                    help=f"Delay between characters in microseconds (default: {DEFAULT_DELAY_US}).")
    ap.add_argument("-p", "--port", help=f"Serial device (default: {SERIAL_PORT}).")
    ap.add_argument("-o", "--one-shot", dest="one_shot", action="store_true",
                    help="Send the file once, then exit.")
    ap.add_argument("--baud", type=int, help=f"Serial baud rate (default: {BAUDRATE}).")
    ap.add_argument("--log-file", help=f"Append log entries to this file (default: {LOG_FILE}).")
    json_group = ap.add_mutually_exclusive_group()
    json_group.add_argument("--json", dest="json", action="store_true", help="Emit JSON log lines on stdout.")
    json_group.add_argument("--no-json", dest="json", action="store_false", help="Emit plain log lines on stdout.")
    ap.add_argument("--doctor", action="store_true", help="Check the port and source file, then exit. Writes nothing.")
    ap.add_argument("--self-test", action="store_true", help="Open the port, send a short test pattern once, then exit.")
    ap.add_argument("--config", help="Path to a TOML config file. CLI args override config values.")
    ap.add_argument("--print-config", action="store_true", help="Print the resolved configuration and exit.")
    ap.add_argument("--version", action="store_true", help="Print version and exit.")
    return ap


def transmission_config_from(args) -> TransmissionConfig:
    return TransmissionConfig(
        source_path=args.file,
        port=args.port,
        delay_us=int(args.delay),
        one_shot=bool(args.one_shot),
        baudrate=int(args.baud),
    )
