"""Command line interface for GPU Status Tool."""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from . import __version__
from .devices import parse_detected_devices
from .log_utils import format_device_table, setup_logging
from .settings import SettingsError, SettingsStore
from .settings.store import default_settings_path, tool_home

LOGGER = logging.getLogger(__name__)

# Lets a host process point the CLI at its own status file.
# Example:
#   export GPU_STATUS_FILE=/var/lib/miner/gpu_status.json
_ENV_STATUS_FILE = "GPU_STATUS_FILE"


def _resolve_path(arg: Optional[str]) -> Path:
    if arg:
        return Path(arg).expanduser()
    env = (os.environ.get(_ENV_STATUS_FILE) or "").strip()
    if env:
        return Path(env).expanduser()
    return default_settings_path()


def _cmd_show(store: SettingsStore, args: argparse.Namespace) -> int:
    sf = store.load()
    print(format_device_table(sf.devices))
    return 0


def _cmd_reconcile(store: SettingsStore, args: argparse.Namespace) -> int:
    detected_path = Path(args.detected).expanduser()
    try:
        data = json.loads(detected_path.read_text(encoding="utf-8"))
        detected = parse_detected_devices(data)
    except (OSError, ValueError, RecursionError) as e:
        # SchemaError is a ValueError.
        LOGGER.error("Cannot read detected devices from %s: %s", detected_path, e)
        return 1

    merged = store.reconcile(detected)
    print(format_device_table(merged.devices))
    if args.dry_run:
        LOGGER.info("Dry run: %s not written", store.path)
        return 0
    store.save(merged)
    LOGGER.info("Saved %d device(s) to %s", len(merged), store.path)
    return 0


def _cmd_set_excluded(store: SettingsStore, args: argparse.Namespace, excluded: bool) -> int:
    sf = store.load()
    try:
        dev = sf.set_excluded(args.index, excluded)
    except KeyError:
        LOGGER.error("No device with index %d in %s", args.index, store.path)
        return 1
    store.save(sf)
    LOGGER.info(
        "%s device %d (%s)", "Excluded" if excluded else "Included", dev.device_index, dev.device_name
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gpu-status",
        description="Inspect and edit the persisted per-device GPU settings.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument(
        "--file",
        type=str,
        default=None,
        help=f"GPU status file (default: ${_ENV_STATUS_FILE} or ~/.gpu_status_tool/gpu_status.json)",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    ap.add_argument("--no-log-file", action="store_true", help="Only log to stdout")

    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Print the devices stored in the status file")

    rec = sub.add_parser("reconcile", help="Merge a detector dump with the stored settings")
    rec.add_argument("detected", help="JSON file with the freshly detected devices")
    rec.add_argument("--dry-run", action="store_true", help="Print the result without saving")

    exc = sub.add_parser("exclude", help="Exclude a device from use")
    exc.add_argument("index", type=int)

    inc = sub.add_parser("include", help="Allow a previously excluded device again")
    inc.add_argument("index", type=int)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    setup_logging(None if args.no_log_file else tool_home(), verbose=args.verbose)
    store = SettingsStore(path=_resolve_path(args.file))
    LOGGER.debug("GPU status file: %s", store.path)

    try:
        if args.command == "show":
            return _cmd_show(store, args)
        if args.command == "reconcile":
            return _cmd_reconcile(store, args)
        if args.command == "exclude":
            return _cmd_set_excluded(store, args, True)
        if args.command == "include":
            return _cmd_set_excluded(store, args, False)
    except SettingsError as e:
        LOGGER.error("%s", e)
        return 1

    ap.error(f"unknown command {args.command!r}")


if __name__ == "__main__":
    raise SystemExit(main())
