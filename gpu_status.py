#!/usr/bin/env python3
"""Convenience entry point for running the tool from a checkout."""

from gpu_status_tool.api import *  # re-export for scripts importing this file
from gpu_status_tool.cli import main as _main


if __name__ == "__main__":
    raise SystemExit(_main())
