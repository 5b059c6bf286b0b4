"""
HTTPS client for the Nature Remo cloud ``/1/devices`` endpoint.

Issues a single authenticated GET per call and decodes the JSON body into
:class:`~exporter.src.models.Device` records. There is no retry and no
timeout override beyond httpx defaults; scheduling and failure policy belong
to the refresh engine.

Operations:
- fetch_devices(): GET the device list and decode it.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from exporter.src.config import DEFAULT_BASE_URL
from exporter.src.errors import DecodeError, TransportError
from exporter.src.models import Device

logger = logging.getLogger(__name__)

_DEVICES_PATH = "/1/devices"
_DEVICE_LIST = TypeAdapter(list[Device])


class DeviceClient:
    """Async client for the Nature Remo device list.

    Args:
        api_key: Bearer credential sent in the ``Authorization`` header.
        base_url: API host without scheme (default ``api.nature.global``).
        transport: Optional httpx transport, used by tests to stub the API.

    Usage::

        client = DeviceClient(api_key="secret")
        devices = await client.fetch_devices()
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url or DEFAULT_BASE_URL
        self._transport = transport

    @property
    def endpoint(self) -> str:
        """Full URL of the device list endpoint."""
        return f"https://{self._base_url}{_DEVICES_PATH}"

    async def fetch_devices(self) -> list[Device]:
        """Fetch and decode the current device list.

        Returns:
            The decoded devices, in response order.

        Raises:
            TransportError: If the request could not be sent, the connection
                failed, or the API answered with a non-2xx status.
            DecodeError: If the body is not valid JSON of the expected shape.
        """
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    self.endpoint,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"GET {self.endpoint} failed: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                f"GET {self.endpoint} returned HTTP {response.status_code}"
            )

        try:
            devices = _DEVICE_LIST.validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(
                f"unexpected response body from {self.endpoint}: {exc}"
            ) from exc

        logger.debug("Fetched %d device(s) from %s", len(devices), self.endpoint)
        return devices
