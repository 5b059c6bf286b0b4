"""
Shared test fixtures for exporter tests.

Provides config file and API payload fixtures. All ``REMO_*`` environment
variables are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def _clean_exporter_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all exporter env vars and run each test inside tmp_path.

    Individual tests then set only the vars they need.
    """
    for var in list(os.environ):
        if var.upper().startswith("REMO_"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes YAML text to a config file in tmp_path."""

    def _write(text: str, name: str = "config.yml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def make_device_payload(
    device_id: str = "d1",
    name: str = "Room",
    serial_number: str = "S1",
    temperature: float = 21.3,
    humidity: float = 40.0,
    illumination: float = 100.0,
    temperature_offset: float = 0.5,
    humidity_offset: float = 0.0,
) -> dict[str, Any]:
    """Return one device object shaped like the ``/1/devices`` response."""
    return {
        "id": device_id,
        "name": name,
        "temperature_offset": temperature_offset,
        "humidity_offset": humidity_offset,
        "created_at": "2020-01-01T00:00:00Z",
        "updated_at": "2026-10-19T09:00:00Z",
        "firmware_version": "Remo/1.0.77-g808448c",
        "mac_address": "aa:bb:cc:dd:ee:ff",
        "serial_number": serial_number,
        "newest_events": {
            "te": {"val": temperature, "created_at": "2026-10-19T09:00:00Z"},
            "hu": {"val": humidity, "created_at": "2026-10-19T09:00:00Z"},
            "il": {"val": illumination, "created_at": "2026-10-19T09:00:00Z"},
            "mo": {"val": 1, "created_at": "2026-10-19T08:59:00Z"},
        },
    }


@pytest.fixture()
def device_payload() -> dict[str, Any]:
    """A single default device payload (id d1, name Room, serial S1)."""
    return make_device_payload()
