from __future__ import annotations

import json
import logging
import os
import shutil
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Union

from ..devices import DeviceRecord, DeviceSettings, SchemaError, SettingsFile
from .errors import ParseError, ReadError, SettingsError, WriteError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_FILENAME = "gpu_status.json"


def tool_home() -> Path:
    # Shared with the CLI log file.
    return Path.home() / ".gpu_status_tool"


def default_settings_path() -> Path:
    return tool_home() / DEFAULT_FILENAME


def load_settings_file(path: PathLike) -> SettingsFile:
    """Read and parse the status file at ``path``.

    Raises :class:`ReadError` if the file cannot be read and
    :class:`ParseError` if it is not valid JSON or does not match the schema.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ReadError(path, f"Cannot read GPU status file ({e.strerror or e})") from e

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow.
        raise ParseError(path, f"GPU status file is not valid JSON ({e})") from e

    try:
        return SettingsFile.from_dict(data)
    except SchemaError as e:
        raise ParseError(path, f"GPU status file does not match the schema ({e})") from e


def save_settings_file(settings_file: SettingsFile, path: PathLike) -> None:
    """Write ``settings_file`` to ``path`` atomically.

    The payload goes to a sibling ``.tmp`` file first and is moved over the
    target with :func:`os.replace`. Any I/O failure raises :class:`WriteError`.
    """
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    txt = json.dumps(settings_file.to_dict(), indent=2, sort_keys=True) + "\n"

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(txt, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as e:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise WriteError(path, f"Cannot write GPU status file ({e.strerror or e})") from e


def _backup_corrupt_file(path: Path) -> None:
    ts = time.strftime("%Y%m%d_%H%M%S")
    bak = path.with_name(f"{path.name}.bak.{ts}")
    try:
        content = path.read_bytes()
        # One backup per distinct corrupt content; restarts reuse it.
        for existing in sorted(path.parent.glob(f"{path.name}.bak.*")):
            if existing.is_file() and existing.read_bytes() == content:
                LOGGER.debug("Corrupt GPU status file already backed up as %s", existing)
                return
        shutil.copy2(path, bak)
    except OSError as e:
        LOGGER.warning("Could not back up corrupt GPU status file %s: %s", path, e)
        return
    LOGGER.warning("Backed up corrupt GPU status file to %s", bak)


def _copy_record(dev: DeviceRecord, settings: DeviceSettings) -> DeviceRecord:
    return replace(dev, status=replace(dev.status), settings=settings.copy())


def _index_persisted(devices: Iterable[DeviceRecord]) -> Dict[int, DeviceRecord]:
    by_index: Dict[int, DeviceRecord] = {}
    for dev in devices:
        if dev.device_index in by_index:
            LOGGER.warning(
                "GPU status file lists device index %d more than once; using the first entry",
                dev.device_index,
            )
            continue
        by_index[dev.device_index] = dev
    return by_index


def reconcile_devices(
    detected_devices: Iterable[DeviceRecord],
    path: PathLike,
    backup_corrupt: bool = True,
) -> SettingsFile:
    """Merge freshly detected devices with the settings persisted at ``path``.

    Every detected device appears once in the result, in input order, with its
    detected name and status. Its settings come from the persisted record with
    the same ``device_index`` when there is one, otherwise they are left as the
    detector set them. Persisted devices that were not detected are dropped.

    This never raises for a missing or broken file: the problem is logged and
    the detected devices are returned unchanged.
    """
    path = Path(path)
    detected: List[DeviceRecord] = list(detected_devices)

    try:
        persisted = load_settings_file(path)
    except SettingsError as e:
        LOGGER.warning("Could not load GPU status file: %s. Using detected devices", e)
        if backup_corrupt and isinstance(e, ParseError):
            _backup_corrupt_file(path)
        return SettingsFile(devices=[_copy_record(d, d.settings) for d in detected])

    by_index = _index_persisted(persisted.devices)

    resolved: List[DeviceRecord] = []
    for dev in detected:
        match = by_index.get(dev.device_index)
        settings = match.settings if match is not None else dev.settings
        resolved.append(_copy_record(dev, settings))

    seen = {d.device_index for d in detected}
    dropped = sorted(i for i in by_index if i not in seen)
    if dropped:
        LOGGER.info("Dropping GPU devices no longer detected: %s", ", ".join(map(str, dropped)))

    return SettingsFile(devices=resolved)


@dataclass
class SettingsStore:
    """Load/save/reconcile the GPU status file at a fixed location."""

    path: Path = field(default_factory=default_settings_path)

    def __post_init__(self) -> None:
        self.path = Path(self.path).expanduser()

    def load(self) -> SettingsFile:
        return load_settings_file(self.path)

    def save(self, settings_file: SettingsFile) -> None:
        save_settings_file(settings_file, self.path)

    def reconcile(
        self, detected_devices: Iterable[DeviceRecord], backup_corrupt: bool = True
    ) -> SettingsFile:
        return reconcile_devices(detected_devices, self.path, backup_corrupt=backup_corrupt)
