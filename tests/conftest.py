from __future__ import annotations

from typing import List

import pytest

from gpu_status_tool.devices import DeviceRecord, DeviceSettings, DeviceStatus


def make_device(
    index: int,
    name: str = "",
    grid: int = 1024,
    block: int = 256,
    max_grid: int = 65535,
    excluded: bool = False,
    available: bool = True,
) -> DeviceRecord:
    return DeviceRecord(
        device_name=name or f"GPU {index}",
        device_index=index,
        status=DeviceStatus(
            recommended_grid_size=grid,
            recommended_block_size=block,
            max_grid_size=max_grid,
        ),
        settings=DeviceSettings(is_excluded=excluded, is_available=available),
    )


@pytest.fixture
def detected() -> List[DeviceRecord]:
    return [
        make_device(0, "NVIDIA GeForce RTX 3080", grid=8704, block=128),
        make_device(1, "NVIDIA GeForce RTX 3070", grid=5888, block=128),
        make_device(7, "AMD Radeon RX 6800", grid=3840, block=256),
    ]
