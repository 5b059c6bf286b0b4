"""
Process entrypoint for the Nature Remo exporter.

Runs two concurrent asyncio activities sharing one MetricRegistry:
1. **Refresh loop**: ticks on a fixed interval and spawns detached cycles
   that fetch ``/1/devices`` and update the gauges.
2. **Scrape server**: uvicorn serving ``/metrics`` and ``/health`` in the
   foreground on the configured listen address.

Configuration and listener failures are fatal and exit with status 1. Refresh
failures are logged by the engine and never reach this module. On SIGINT or
SIGTERM uvicorn stops serving, after which the shared shutdown event stops
the refresh ticker; in-flight cycles are left to finish on their own.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Exit 1 on command line errors; close the listener on cancellation

TODO:
- None
"""

from __future__ import annotations

import argparse
import asyncio
import hashlib
import json
import logging
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from exporter.src import __version__
from exporter.src.client import DeviceClient
from exporter.src.config import DEFAULT_CONFIG_PATH, load_settings
from exporter.src.errors import ConfigError, ListenerError
from exporter.src.health import HealthWriter
from exporter.src.metrics import MetricRegistry
from exporter.src.refresh import RefreshEngine
from exporter.src.server import bind_listener, create_app, serve

if TYPE_CHECKING:
    from exporter.src.config import ExporterSettings

logger = logging.getLogger(__name__)

PROG = "nature-remo-exporter"


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the exporter.

    Sets up the root logger with a JSON-formatted handler writing to stderr.

    Args:
        level: Root log level name, e.g. ``INFO`` or ``DEBUG``.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def _masked_token(value: str | None) -> str:
    """Return a short non-reversible token fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def log_config_summary(settings: ExporterSettings) -> None:
    """Log a config summary at startup, excluding secrets.

    The API key is reduced to a length and hash fingerprint.

    Args:
        settings: Loaded exporter settings.
    """
    remo = settings.nature_remo
    logger.info(
        "Exporter starting with config: "
        "base_url=%s, listen_address=%s, refresh_interval_s=%s, "
        "max_in_flight=%s, humidity_offset_source=%s, api_key_masked=%s",
        remo.base_url,
        settings.promhttp.listen_address,
        remo.refresh_interval_s,
        remo.max_in_flight,
        remo.humidity_offset_source,
        _masked_token(remo.api_key),
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


async def run(
    settings: ExporterSettings,
    *,
    health: HealthWriter | None = None,
    shutdown_event: asyncio.Event | None = None,
    client: DeviceClient | None = None,
) -> None:
    """Bind the listener, start the refresh loop and serve until shutdown.

    Args:
        settings: Loaded exporter settings.
        health: Health state shared by the engine and ``/health``.
        shutdown_event: Event that stops both activities. Created when None.
        client: Device client override; built from settings when None.

    Raises:
        ListenerError: If the scrape endpoint cannot be bound.
    """
    sock = bind_listener(settings.promhttp.listen_address)

    if shutdown_event is None:
        shutdown_event = asyncio.Event()
    if client is None:
        client = DeviceClient(
            api_key=settings.nature_remo.api_key,
            base_url=settings.nature_remo.base_url,
        )

    registry = MetricRegistry()
    engine = RefreshEngine(
        client=client,
        registry=registry,
        interval_s=settings.nature_remo.refresh_interval_s,
        health=health,
        max_in_flight=settings.nature_remo.max_in_flight,
        humidity_offset_source=settings.nature_remo.humidity_offset_source,
    )
    app = create_app(registry, health=health)

    refresh_task = asyncio.create_task(engine.run(shutdown_event))
    try:
        await serve(app, sock, shutdown_event)
    finally:
        logger.info("Scrape server stopped, stopping refresh loop")
        shutdown_event.set()
        try:
            await refresh_task
        finally:
            sock.close()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(prog=PROG, description="Nature Remo Exporter")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Log level (default: %(default)s)",
    )
    parser.add_argument(
        "--health-file",
        default=None,
        help="Optional path of a JSON health file rewritten after every refresh",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous entrypoint for the exporter.

    Args:
        argv: Command line arguments, defaults to ``sys.argv[1:]``.

    Returns:
        Process exit status: 0 on graceful stop, 1 on a command line,
        setup or listener failure.
    """
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        # --help and --version exit 0; usage errors map to the setup failure status.
        if exc.code in (0, None):
            raise
        return 1
    configure_logging(args.log_level)

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        logger.error("error while setup: %s", exc)
        return 1

    log_config_summary(settings)
    health = HealthWriter(args.health_file)

    try:
        asyncio.run(run(settings, health=health))
    except ListenerError as exc:
        logger.error("error while serving promhttp: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
