"""
Health state for the exporter.

Tracks three fields:
- last_refresh_ts: ISO timestamp of the most recent refresh attempt.
- last_success_ts: ISO timestamp of the most recent successful refresh.
- device_count: Number of devices seen in the most recent successful refresh.

When a path is configured the JSON health file is rewritten on every state
change, giving Docker HEALTHCHECK or external monitoring a staleness signal
that ``/metrics`` itself does not carry. The same snapshot is served on
``GET /health``.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path


class HealthWriter:
    """Keeps refresh health state and mirrors it to an optional JSON file.

    Args:
        path: Filesystem path for the health JSON file, or None to keep the
            state in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._last_refresh_ts: str | None = None
        self._last_success_ts: str | None = None
        self._device_count: int = 0

    def record_refresh(self) -> None:
        """Record a refresh attempt and write health file."""
        self._last_refresh_ts = datetime.now(tz=UTC).isoformat()
        self._write()

    def record_success(self, device_count: int) -> None:
        """Record a successful refresh and write health file.

        Args:
            device_count: Number of devices returned by the API.
        """
        self._last_success_ts = datetime.now(tz=UTC).isoformat()
        self._device_count = device_count
        self._write()

    def snapshot(self) -> dict[str, str | int | None]:
        """Return the current health state."""
        return {
            "last_refresh_ts": self._last_refresh_ts,
            "last_success_ts": self._last_success_ts,
            "device_count": self._device_count,
        }

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        if self.path is None:
            return
        self.path.write_text(json.dumps(self.snapshot()))
