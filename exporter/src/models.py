"""
Pydantic models for the Nature Remo ``/1/devices`` response.

A device carries identity fields, calibration offsets and a ``newest_events``
snapshot holding the latest value of each sensor channel. Fields missing from
the JSON fall back to zero values so a device that lacks a sensor (for example
a Remo mini without an illuminance sensor) still decodes.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class LabelKey(NamedTuple):
    """Label tuple identifying one gauge series per metric kind."""

    id: str
    name: str
    serial_number: str


class SensorValue(BaseModel):
    """A single sensor channel reading.

    Attributes:
        val: Reading value in engineering units.
        created_at: Time the reading was taken by the device.
    """

    model_config = ConfigDict(extra="ignore")

    val: float = 0.0
    created_at: datetime | None = None


class NewestEvents(BaseModel):
    """Latest reading per sensor channel.

    Attributes:
        te: Temperature in degrees Celsius.
        hu: Relative humidity in percent.
        il: Illuminance.
        mo: Movement. Decoded but not exported.
    """

    model_config = ConfigDict(extra="ignore")

    te: SensorValue = Field(default_factory=SensorValue)
    hu: SensorValue = Field(default_factory=SensorValue)
    il: SensorValue = Field(default_factory=SensorValue)
    mo: SensorValue = Field(default_factory=SensorValue)


class Device(BaseModel):
    """A Nature Remo device as returned by ``GET /1/devices``.

    Devices are fetched fresh on every refresh cycle and discarded afterwards;
    no identity is retained across cycles.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    temperature_offset: float = 0.0
    humidity_offset: float = 0.0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    firmware_version: str = ""
    mac_address: str = ""
    serial_number: str = ""
    newest_events: NewestEvents = Field(default_factory=NewestEvents)

    def label_key(self) -> LabelKey:
        """Return the (id, name, serial_number) label tuple for this device."""
        return LabelKey(id=self.id, name=self.name, serial_number=self.serial_number)
