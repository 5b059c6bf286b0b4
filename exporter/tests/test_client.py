"""
Unit tests for the Nature Remo device client.

Tests verify:
- GET goes to https://{base_url}/1/devices with a Bearer token.
- Default base URL is api.nature.global.
- A JSON device array decodes into Device records.
- Connection failures raise TransportError.
- Non-2xx responses raise TransportError.
- Invalid JSON or an unexpected shape raises DecodeError.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from exporter.src.client import DeviceClient
from exporter.src.errors import DecodeError, TransportError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client_returning(
    response: httpx.Response,
    seen: list[httpx.Request] | None = None,
    base_url: str = "api.nature.global",
) -> DeviceClient:
    """Build a DeviceClient whose transport always answers with *response*."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return response

    return DeviceClient(
        api_key="secret-key",
        base_url=base_url,
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    """The client issues one authenticated GET."""

    @pytest.mark.asyncio
    async def test_get_devices_with_bearer(self) -> None:
        """Request is GET https://api.nature.global/1/devices with Bearer auth."""
        seen: list[httpx.Request] = []
        client = _client_returning(httpx.Response(200, json=[]), seen)

        await client.fetch_devices()

        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert str(seen[0].url) == "https://api.nature.global/1/devices"
        assert seen[0].headers["Authorization"] == "Bearer secret-key"

    @pytest.mark.asyncio
    async def test_custom_base_url(self) -> None:
        """A configured base_url replaces the host."""
        seen: list[httpx.Request] = []
        client = _client_returning(
            httpx.Response(200, json=[]), seen, base_url="api.example.test"
        )

        await client.fetch_devices()

        assert str(seen[0].url) == "https://api.example.test/1/devices"

    def test_empty_base_url_uses_default(self) -> None:
        """An empty base_url falls back to api.nature.global."""
        client = DeviceClient(api_key="k", base_url="")
        assert client.endpoint == "https://api.nature.global/1/devices"


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


class TestDecode:
    """Successful responses decode into Device records."""

    @pytest.mark.asyncio
    async def test_decodes_devices(self, device_payload: dict[str, Any]) -> None:
        """Each array element becomes a Device in response order."""
        second = dict(device_payload, id="d2", name="Bedroom", serial_number="S2")
        client = _client_returning(
            httpx.Response(200, json=[device_payload, second])
        )

        devices = await client.fetch_devices()

        assert [d.id for d in devices] == ["d1", "d2"]
        assert devices[0].newest_events.te.val == 21.3

    @pytest.mark.asyncio
    async def test_empty_list(self) -> None:
        """An empty array is a valid, empty device list."""
        client = _client_returning(httpx.Response(200, json=[]))
        assert await client.fetch_devices() == []

    @pytest.mark.asyncio
    async def test_invalid_json_raises_decode_error(self) -> None:
        """A non-JSON body raises DecodeError."""
        client = _client_returning(httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(DecodeError):
            await client.fetch_devices()

    @pytest.mark.asyncio
    async def test_object_instead_of_array_raises_decode_error(self) -> None:
        """A JSON object where an array is expected raises DecodeError."""
        client = _client_returning(httpx.Response(200, json={"code": 401001}))
        with pytest.raises(DecodeError):
            await client.fetch_devices()

    @pytest.mark.asyncio
    async def test_wrong_field_type_raises_decode_error(
        self, device_payload: dict[str, Any]
    ) -> None:
        """A non-numeric reading value raises DecodeError."""
        device_payload["newest_events"]["te"]["val"] = "warm"
        client = _client_returning(httpx.Response(200, json=[device_payload]))
        with pytest.raises(DecodeError):
            await client.fetch_devices()


# ---------------------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------------------


class TestTransportErrors:
    """Network and HTTP status failures raise TransportError."""

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        """A connection failure raises TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = DeviceClient(api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError, match="connection refused"):
            await client.fetch_devices()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """A read timeout raises TransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = DeviceClient(api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError):
            await client.fetch_devices()

    @pytest.mark.asyncio
    async def test_http_500(self) -> None:
        """HTTP 500 raises TransportError carrying the status code."""
        client = _client_returning(httpx.Response(500, text="internal error"))
        with pytest.raises(TransportError, match="500"):
            await client.fetch_devices()

    @pytest.mark.asyncio
    async def test_http_401(self) -> None:
        """An auth failure is reported, not decoded as an empty list."""
        client = _client_returning(httpx.Response(401, json={"code": 401001}))
        with pytest.raises(TransportError, match="401"):
            await client.fetch_devices()
