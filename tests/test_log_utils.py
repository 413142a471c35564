from __future__ import annotations

from conftest import make_device
from gpu_status_tool.log_utils import format_device_table, sanitize_name


def test_sanitize_name_removes_ansi_and_newlines() -> None:
    raw = "\x1b[0;93mNVIDIA\x1b[m GeForce\r\nRTX\t3080\x1b[0m"

    cleaned = sanitize_name(raw)

    assert cleaned == "NVIDIA GeForce RTX 3080"
    assert sanitize_name("") == ""


def test_format_device_table_lists_every_device() -> None:
    table = format_device_table(
        [
            make_device(0, "NVIDIA GeForce RTX 3080", grid=8704, block=128),
            make_device(7, "AMD Radeon RX 6800", excluded=True, available=False),
        ]
    )
    lines = table.splitlines()

    assert lines[0].split()[0] == "idx"
    assert set(lines[1].replace(" ", "")) == {"-"}
    assert lines[2].startswith("0 ")
    assert "NVIDIA GeForce RTX 3080" in lines[2]
    assert "8704" in lines[2]
    assert lines[3].startswith("7 ")
    assert lines[3].split()[-2:] == ["yes", "no"]


def test_format_device_table_empty() -> None:
    assert format_device_table([]) == "(no devices)"
