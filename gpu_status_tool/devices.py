"""Device records and the JSON schema of the GPU status file.

A status file looks like::

    {"devices": [{"device_name": "...", "device_index": 0,
                  "status": {...}, "settings": {...}}]}

``status`` is recomputed by the detector on every run and is only stored for
inspection. ``settings`` carries user intent and survives restarts.

Conversion from JSON is strict about required fields and types but ignores
unknown keys, so newer files stay readable by older versions of the tool.
Integer fields are 32-bit unsigned (0 .. 2**32 - 1).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


UINT32_MAX = 2**32 - 1


class SchemaError(ValueError):
    """Raised when a JSON document does not match the status-file schema."""


def _require(obj: Dict[str, Any], key: str, where: str) -> Any:
    if key not in obj:
        raise SchemaError(f"{where}: missing required field '{key}'")
    return obj[key]


def _as_mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _as_uint(value: Any, where: str) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{where}: expected an unsigned integer, got {value!r}")
    if value < 0 or value > UINT32_MAX:
        raise SchemaError(f"{where}: expected an unsigned 32-bit integer, got {value}")
    return value


def _as_bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise SchemaError(f"{where}: expected a boolean, got {value!r}")
    return value


def _as_str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise SchemaError(f"{where}: expected a string, got {value!r}")
    return value


@dataclass
class DeviceStatus:
    """Scheduling hints computed by the detector for one device."""

    recommended_grid_size: int = 0
    recommended_block_size: int = 0
    max_grid_size: int = 0

    @classmethod
    def from_dict(cls, data: Any, where: str = "status") -> "DeviceStatus":
        obj = _as_mapping(data, where)
        return cls(
            recommended_grid_size=_as_uint(
                _require(obj, "recommended_grid_size", where), f"{where}.recommended_grid_size"
            ),
            recommended_block_size=_as_uint(
                _require(obj, "recommended_block_size", where), f"{where}.recommended_block_size"
            ),
            max_grid_size=_as_uint(_require(obj, "max_grid_size", where), f"{where}.max_grid_size"),
        )


@dataclass
class DeviceSettings:
    """User-editable settings. Defaults apply to devices seen for the first time."""

    is_excluded: bool = False
    is_available: bool = True

    @classmethod
    def from_dict(cls, data: Any, where: str = "settings") -> "DeviceSettings":
        obj = _as_mapping(data, where)
        return cls(
            is_excluded=_as_bool(_require(obj, "is_excluded", where), f"{where}.is_excluded"),
            is_available=_as_bool(_require(obj, "is_available", where), f"{where}.is_available"),
        )

    def copy(self) -> "DeviceSettings":
        return DeviceSettings(is_excluded=self.is_excluded, is_available=self.is_available)


@dataclass
class DeviceRecord:
    device_name: str
    device_index: int
    status: DeviceStatus = field(default_factory=DeviceStatus)
    settings: DeviceSettings = field(default_factory=DeviceSettings)

    @property
    def is_active(self) -> bool:
        return self.settings.is_available and not self.settings.is_excluded

    @classmethod
    def from_dict(
        cls, data: Any, where: str = "device", settings_required: bool = True
    ) -> "DeviceRecord":
        """Build a record from its JSON object.

        ``settings_required=False`` is used for detector dumps, where a device
        seen for the first time carries no settings yet.
        """
        obj = _as_mapping(data, where)
        if settings_required or "settings" in obj:
            settings = DeviceSettings.from_dict(_require(obj, "settings", where), f"{where}.settings")
        else:
            settings = DeviceSettings()
        return cls(
            device_name=_as_str(_require(obj, "device_name", where), f"{where}.device_name"),
            device_index=_as_uint(_require(obj, "device_index", where), f"{where}.device_index"),
            status=DeviceStatus.from_dict(_require(obj, "status", where), f"{where}.status"),
            settings=settings,
        )


@dataclass
class SettingsFile:
    """Ordered list of device records, as persisted on disk."""

    devices: List[DeviceRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.devices)

    def __iter__(self):
        return iter(self.devices)

    def find_device(self, device_index: int) -> Optional[DeviceRecord]:
        # First match wins when indices are duplicated.
        for dev in self.devices:
            if dev.device_index == device_index:
                return dev
        return None

    def set_excluded(self, device_index: int, excluded: bool = True) -> DeviceRecord:
        dev = self.find_device(device_index)
        if dev is None:
            raise KeyError(device_index)
        dev.settings.is_excluded = bool(excluded)
        return dev

    def active_devices(self) -> List[DeviceRecord]:
        return [d for d in self.devices if d.is_active]

    def to_dict(self) -> Dict[str, Any]:
        return {"devices": [asdict(d) for d in self.devices]}

    @classmethod
    def from_dict(cls, data: Any) -> "SettingsFile":
        obj = _as_mapping(data, "root")
        if "devices" in obj:
            raw = obj["devices"]
        elif "gpu_devices" in obj:
            # Files written before the key was renamed.
            raw = obj["gpu_devices"]
        else:
            raise SchemaError("root: missing required field 'devices'")
        if not isinstance(raw, list):
            raise SchemaError(f"root.devices: expected a list, got {type(raw).__name__}")
        return cls(devices=[DeviceRecord.from_dict(d, f"devices[{i}]") for i, d in enumerate(raw)])


def parse_detected_devices(data: Any) -> List[DeviceRecord]:
    """Parse a detector dump into device records.

    Accepts either a status-file document or a bare list of device objects.
    Devices without ``settings`` get the defaults.
    """
    if isinstance(data, dict):
        if "devices" in data:
            data = data["devices"]
        elif "gpu_devices" in data:
            data = data["gpu_devices"]
        else:
            raise SchemaError("root: missing required field 'devices'")
    if not isinstance(data, list):
        raise SchemaError(f"root: expected a list of devices, got {type(data).__name__}")
    return [
        DeviceRecord.from_dict(d, f"devices[{i}]", settings_required=False)
        for i, d in enumerate(data)
    ]
