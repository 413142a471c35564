from __future__ import annotations

from pathlib import Path
from typing import Union


class SettingsError(Exception):
    """Base class for status-file failures. ``path`` is the file involved."""

    def __init__(self, path: Union[str, Path], message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {self.path}")


class ReadError(SettingsError):
    """The file is missing or cannot be read."""


class ParseError(SettingsError):
    """The file was read but its content does not match the schema."""


class WriteError(SettingsError):
    """The file could not be written."""
