"""
Exception taxonomy for the Nature Remo exporter.

Fatal errors (``ConfigError``, ``ListenerError``) are only handled by the
process entrypoint, which maps them to exit status 1. Fetch-path errors
(``TransportError``, ``DecodeError``) are contained inside the refresh engine
and never terminate the process.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ExporterError):
    """Configuration file is missing, unreadable, malformed or invalid."""


class TransportError(ExporterError):
    """The device list request could not be sent or did not succeed."""


class DecodeError(ExporterError):
    """The device list response body is not the expected JSON shape."""


class ListenerError(ExporterError):
    """The scrape endpoint could not bind its listen address."""
