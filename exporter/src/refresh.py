"""
Fixed-interval refresh engine for Nature Remo gauges.

On every tick the engine spawns a detached refresh cycle that fetches the
device list and updates all five gauge series for every device. Ticks are
scheduled against the event loop clock, independent of cycle completion:

- A slow or hung fetch never delays the next tick.
- Overlapping cycles run concurrently; the last cycle to *complete* wins for
  a shared label key.
- A failed fetch is logged and leaves every gauge untouched, so ``/metrics``
  keeps serving the last good values instead of zeros.
- Setting the shutdown event stops scheduling new ticks. In-flight cycles are
  not cancelled.

Without ``max_in_flight`` nothing bounds the number of concurrent cycles when
the API stays slow for longer than the interval.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Take the default interval from the config module

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Literal

from exporter.src.config import DEFAULT_REFRESH_INTERVAL_S
from exporter.src.errors import ExporterError

if TYPE_CHECKING:
    from exporter.src.client import DeviceClient
    from exporter.src.health import HealthWriter
    from exporter.src.metrics import MetricRegistry
    from exporter.src.models import Device

logger = logging.getLogger(__name__)


class RefreshEngine:
    """Periodically copies Nature Remo device readings into the gauge registry.

    Args:
        client: Device list client.
        registry: Shared gauge registry.
        interval_s: Seconds between ticks.
        health: Optional HealthWriter updated after every cycle.
        max_in_flight: Skip a tick when this many cycles are still running.
            None (default) never skips.
        humidity_offset_source: Device field exported as the humidity offset
            gauge. ``temperature_offset`` keeps the historical behaviour.
    """

    def __init__(
        self,
        *,
        client: DeviceClient,
        registry: MetricRegistry,
        interval_s: float = DEFAULT_REFRESH_INTERVAL_S,
        health: HealthWriter | None = None,
        max_in_flight: int | None = None,
        humidity_offset_source: Literal[
            "temperature_offset", "humidity_offset"
        ] = "temperature_offset",
    ) -> None:
        self._client = client
        self._registry = registry
        self._interval_s = interval_s
        self._health = health
        self._max_in_flight = max_in_flight
        self._humidity_offset_source = humidity_offset_source
        self._in_flight: set[asyncio.Task[bool]] = set()

    @property
    def in_flight(self) -> set[asyncio.Task[bool]]:
        """Refresh cycles spawned by :meth:`run` that have not finished yet."""
        return self._in_flight

    # ------------------------------------------------------------------
    # Single cycle
    # ------------------------------------------------------------------

    def apply_devices(self, devices: Iterable[Device]) -> None:
        """Write every gauge series for each device.

        All five series of a device are set from the same record with no
        await in between, so a scrape or an overlapping cycle never
        interleaves with a half-updated device.

        Args:
            devices: Devices from a single successful fetch.
        """
        for device in devices:
            key = device.label_key()
            events = device.newest_events
            self._registry.set_temperature(key, events.te.val)
            self._registry.set_temperature_offset(key, device.temperature_offset)
            self._registry.set_humidity(key, events.hu.val)
            self._registry.set_humidity_offset(
                key, getattr(device, self._humidity_offset_source)
            )
            self._registry.set_illumination(key, events.il.val)

    async def refresh_once(self) -> bool:
        """Run one fetch-and-update cycle.

        Catches all exceptions so that a failing cycle never propagates to
        the ticker or the process. On failure the registry is not touched.

        Returns:
            True if devices were fetched and applied, False otherwise.
        """
        ok = False
        try:
            devices = await self._client.fetch_devices()
        except ExporterError as exc:
            logger.error("error while updating metrics: %s", exc, exc_info=True)
        except Exception:
            logger.error("Unexpected error while updating metrics", exc_info=True)
        else:
            self.apply_devices(devices)
            ok = True
            logger.info("Refresh success: updated %d device(s)", len(devices))

        if self._health is not None:
            try:
                self._health.record_refresh()
                if ok:
                    self._health.record_success(len(devices))
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)

        return ok

    # ------------------------------------------------------------------
    # Ticker
    # ------------------------------------------------------------------

    def _dispatch(self) -> None:
        """Spawn a detached refresh cycle for the current tick."""
        if self._max_in_flight is not None and len(self._in_flight) >= self._max_in_flight:
            logger.warning(
                "Skipping refresh tick: %d cycle(s) still in flight (max_in_flight=%d)",
                len(self._in_flight),
                self._max_in_flight,
            )
            return
        task = asyncio.create_task(self.refresh_once())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Tick every ``interval_s`` seconds until *shutdown_event* is set.

        The first tick fires one interval after start. Deadlines are computed
        from the loop clock, so the schedule never drifts with cycle
        duration. When the loop falls behind, missed ticks are dropped rather
        than fired in a burst.

        Args:
            shutdown_event: Event that stops scheduling further ticks.
        """
        loop = asyncio.get_running_loop()
        logger.info("Refresh loop started (interval=%ss)", self._interval_s)
        next_tick = loop.time() + self._interval_s
        while not shutdown_event.is_set():
            # Use wait with timeout so we can check shutdown between ticks
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    shutdown_event.wait(),
                    timeout=max(next_tick - loop.time(), 0.0),
                )
            if shutdown_event.is_set():
                break
            self._dispatch()
            next_tick += self._interval_s
            now = loop.time()
            while next_tick <= now:
                next_tick += self._interval_s
        logger.info(
            "Refresh loop stopped (%d cycle(s) still in flight)", len(self._in_flight)
        )
