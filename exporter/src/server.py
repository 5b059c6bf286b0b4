"""
Scrape endpoint for the Nature Remo exporter.

Serves the shared gauge registry on ``GET /metrics`` in the Prometheus text
exposition format, plus ``GET /health`` for liveness checks. Handlers only read
whatever the registry currently holds; they never wait on a refresh cycle.

The listen socket is bound up front by :func:`bind_listener` so a bind failure
surfaces as :class:`~exporter.src.errors.ListenerError` before any background
work starts, and uvicorn then serves on that socket.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket

import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response

from exporter.src import __version__
from exporter.src.errors import ListenerError
from exporter.src.health import HealthWriter
from exporter.src.metrics import MetricRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    """Render every known gauge series.

    Returns:
        Response: Prometheus text exposition of the shared registry.
    """
    registry: MetricRegistry = request.app.state.registry
    return Response(content=registry.render(), media_type=registry.content_type)


@router.get("/health")
async def health(request: Request) -> dict[str, str | int | None]:
    """Return liveness plus the last refresh state when tracked.

    Returns:
        dict: ``{"status": "ok"}``, extended with the health snapshot when a
        HealthWriter is attached.
    """
    body: dict[str, str | int | None] = {"status": "ok"}
    writer: HealthWriter | None = request.app.state.health
    if writer is not None:
        body.update(writer.snapshot())
    return body


def create_app(
    registry: MetricRegistry,
    health: HealthWriter | None = None,
) -> FastAPI:
    """Build the scrape application around a shared registry.

    Args:
        registry: Gauge registry written by the refresh engine.
        health: Optional health state exposed on ``/health``.

    Returns:
        FastAPI: The configured application.
    """
    app = FastAPI(
        title="Nature Remo Exporter",
        description="Prometheus exporter for Nature Remo sensor readings.",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.registry = registry
    app.state.health = health
    app.include_router(router)
    return app


# ---------------------------------------------------------------------------
# Listener
# ---------------------------------------------------------------------------


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split a listen address into host and port.

    Accepts ``host:port``, ``:port``, ``[v6addr]:port`` and a bare ``port``.
    An empty host means all interfaces.

    Raises:
        ListenerError: If the port is missing or not a valid TCP port.
    """
    s = address.strip()
    if ":" in s:
        host, port_s = s.rsplit(":", 1)
    else:
        host, port_s = "", s
    host = host.strip("[]")
    try:
        port = int(port_s)
    except ValueError:
        raise ListenerError(f"invalid listen address: {address!r}") from None
    if not 0 <= port <= 65535:
        raise ListenerError(f"listen port out of range in {address!r}")
    return host, port


def bind_listener(address: str) -> socket.socket:
    """Bind and listen on *address*.

    Raises:
        ListenerError: If the address is invalid or cannot be bound.
    """
    host, port = parse_listen_address(address)
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        sock = socket.create_server((host, port), family=family)
    except OSError as exc:
        raise ListenerError(f"couldn't listen on {address}: {exc}") from exc
    logger.info("Listening on %s", address)
    return sock


async def serve(
    app: FastAPI,
    sock: socket.socket,
    shutdown_event: asyncio.Event,
) -> None:
    """Serve *app* on the pre-bound *sock* until shutdown.

    The server stops when uvicorn receives SIGINT/SIGTERM or when
    *shutdown_event* is set.

    Args:
        app: Scrape application from :func:`create_app`.
        sock: Listening socket from :func:`bind_listener`.
        shutdown_event: Event that asks the server to exit.
    """
    config = uvicorn.Config(app, log_config=None, access_log=False, lifespan="off")
    server = uvicorn.Server(config)

    async def _watch_shutdown() -> None:
        await shutdown_event.wait()
        server.should_exit = True

    watcher = asyncio.create_task(_watch_shutdown())
    try:
        await server.serve(sockets=[sock])
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
