"""
Prometheus gauge registry for Nature Remo readings.

Owns five label-keyed gauges on a private CollectorRegistry, so the refresh
engine and the scrape server share one explicitly passed store instead of the
process-global default registry. Series are created on first ``set`` and are
never removed; a label combination that disappears from the API keeps serving
its last value. A registry created here also carries the process, platform and
GC collectors, so scrapes include the exporter's own resource usage.

prometheus_client guards every gauge value with its own lock, so concurrent
``set`` calls and scrapes never observe a partially written value.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Register process, platform and GC collectors on owned registries

TODO:
- None
"""

from __future__ import annotations

import enum

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    GCCollector,
    Gauge,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from exporter.src.models import LabelKey

LABEL_NAMES: tuple[str, ...] = LabelKey._fields
"""Label dimensions shared by every gauge: id, name, serial_number."""


class MetricKind(enum.Enum):
    """Exported gauge kinds, valued by their Prometheus metric name."""

    TEMPERATURE = "nature_remo_temperature"
    TEMPERATURE_OFFSET = "nature_remo_temperature_offset"
    HUMIDITY = "nature_remo_humidity"
    HUMIDITY_OFFSET = "nature_remo_humidity_offset"
    ILLUMINATION = "nature_remo_illumination"


_HELP: dict[MetricKind, str] = {
    MetricKind.TEMPERATURE: "Temperature",
    MetricKind.TEMPERATURE_OFFSET: "Temperature Offset",
    MetricKind.HUMIDITY: "Humidity",
    MetricKind.HUMIDITY_OFFSET: "Humidity Offset",
    MetricKind.ILLUMINATION: "Illumination",
}


class MetricRegistry:
    """Gauge series set shared between the refresh engine and scrape server.

    Args:
        registry: CollectorRegistry to register the gauges on. When omitted a
            fresh one is created with the process, platform and GC
            collectors attached.
    """

    content_type: str = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        if registry is None:
            registry = CollectorRegistry()
            ProcessCollector(registry=registry)
            PlatformCollector(registry=registry)
            GCCollector(registry=registry)
        self.registry = registry
        self._gauges: dict[MetricKind, Gauge] = {
            kind: Gauge(kind.value, _HELP[kind], LABEL_NAMES, registry=self.registry)
            for kind in MetricKind
        }

    def set(self, kind: MetricKind, label_key: LabelKey, value: float) -> None:
        """Set the series for *label_key*, creating it on first use.

        Args:
            kind: Which gauge to update.
            label_key: (id, name, serial_number) of the device.
            value: New gauge value.
        """
        self._gauges[kind].labels(*label_key).set(value)

    def set_temperature(self, label_key: LabelKey, value: float) -> None:
        """Set the measured temperature in degrees Celsius."""
        self.set(MetricKind.TEMPERATURE, label_key, value)

    def set_temperature_offset(self, label_key: LabelKey, value: float) -> None:
        """Set the configured temperature offset."""
        self.set(MetricKind.TEMPERATURE_OFFSET, label_key, value)

    def set_humidity(self, label_key: LabelKey, value: float) -> None:
        """Set the measured relative humidity in percent."""
        self.set(MetricKind.HUMIDITY, label_key, value)

    def set_humidity_offset(self, label_key: LabelKey, value: float) -> None:
        """Set the humidity offset gauge."""
        self.set(MetricKind.HUMIDITY_OFFSET, label_key, value)

    def set_illumination(self, label_key: LabelKey, value: float) -> None:
        """Set the measured illumination level."""
        self.set(MetricKind.ILLUMINATION, label_key, value)

    def render(self) -> bytes:
        """Render every known series in the Prometheus text format."""
        return generate_latest(self.registry)
