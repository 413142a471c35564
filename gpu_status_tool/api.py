"""Public API surface.

Host processes import from here: build :class:`DeviceRecord` values from their
own detection code, reconcile them against the status file on startup and save
the result after the user changes a setting.
"""

from __future__ import annotations

from . import __version__

# Data model
from .devices import (
    DeviceRecord,
    DeviceSettings,
    DeviceStatus,
    SchemaError,
    SettingsFile,
    parse_detected_devices,
)

# Persistence + reconciliation
from .settings import (
    ParseError,
    ReadError,
    SettingsError,
    SettingsStore,
    WriteError,
    default_settings_path,
    load_settings_file,
    reconcile_devices,
    save_settings_file,
)

__all__ = [
    "__version__",
    # data model
    "DeviceStatus",
    "DeviceSettings",
    "DeviceRecord",
    "SettingsFile",
    "SchemaError",
    "parse_detected_devices",
    # persistence
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
