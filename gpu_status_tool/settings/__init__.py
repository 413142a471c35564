"""Persistent per-device GPU settings.

A single JSON file records the devices found on the last run together with the
user's settings for each of them (e.g. "excluded from use"). On startup the
freshly detected devices are reconciled against that file by device index.

Design goals:
  * Atomic writes (no half-written file on crash)
  * Fail-open reconciliation (a broken file never blocks device detection)
  * Detected facts win; user settings are carried over
"""

from .errors import ParseError, ReadError, SettingsError, WriteError
from .store import (
    SettingsStore,
    default_settings_path,
    load_settings_file,
    reconcile_devices,
    save_settings_file,
)

__all__ = [
    "SettingsStore",
    "SettingsError",
    "ReadError",
    "ParseError",
    "WriteError",
    "default_settings_path",
    "load_settings_file",
    "save_settings_file",
    "reconcile_devices",
]
