"""
Nature Remo Prometheus exporter package.

Polls the Nature Remo cloud API for sensor device state on a fixed interval
and republishes the newest readings as Prometheus gauges on ``/metrics``.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

__version__ = "0.1.0"
