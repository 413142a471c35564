"""Logging-related utilities.

The library modules only create module loggers; handlers are installed by the
command line entry point through :func:`setup_logging`.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Iterable, Optional

from .devices import DeviceRecord

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# A reasonably complete ANSI escape sequence matcher (CSI + single-character).
_ANSI_ESCAPE_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def setup_logging(log_dir: Optional[Path] = None, verbose: bool = False) -> Optional[Path]:
    """Configure root logging for command line use.

    Logs go to stdout and, when ``log_dir`` is given, to ``gpu_status.log``
    inside it. An existing logging configuration (e.g. when embedded in a host
    process) is left alone. Returns the log file path, if any.
    """

    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    if root.handlers:
        return None

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_path: Optional[Path] = None
    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / "gpu_status.log"
            handlers.append(logging.FileHandler(str(log_path), mode="a", encoding="utf-8"))
        except OSError as e:
            log_path = None
            print(f"[warn] cannot open log file in {log_dir}: {e}", file=sys.stderr)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
    return log_path


def sanitize_name(text: str) -> str:
    """Make a detector-reported device name safe to print on one line.

    Strips ANSI escape sequences and folds CR/LF/tab into single spaces.
    """

    if not text:
        return ""
    text = _ANSI_ESCAPE_RE.sub("", text)
    return " ".join(text.replace("\r", " ").replace("\n", " ").replace("\t", " ").split())


def format_device_table(devices: Iterable[DeviceRecord]) -> str:
    """Render devices as a plain-text table for terminal output."""

    header = ("idx", "name", "grid", "block", "max grid", "excluded", "available")
    rows = [header]
    for d in devices:
        rows.append(
            (
                str(d.device_index),
                sanitize_name(d.device_name),
                str(d.status.recommended_grid_size),
                str(d.status.recommended_block_size),
                str(d.status.max_grid_size),
                "yes" if d.settings.is_excluded else "no",
                "yes" if d.settings.is_available else "no",
            )
        )
    if len(rows) == 1:
        return "(no devices)"

    widths = [max(len(r[i]) for r in rows) for i in range(len(header))]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(r, widths)).rstrip() for r in rows]
    lines.insert(1, "  ".join("-" * w for w in widths))
    return "\n".join(lines)
