"""
Exporter configuration loaded from a YAML file.

Uses Pydantic BaseSettings so the file layout mirrors the ``nature_remo`` /
``promhttp`` sections operators already use, with validation on load.
Environment variables prefixed with ``REMO_`` (nested delimiter ``__``) take
precedence over values from the file, e.g. ``REMO_NATURE_REMO__API_KEY``.

CHANGELOG:
- 2026-10-19: Initial creation
- 2026-10-19: Report undecodable files and non-string keys as ConfigError

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from exporter.src.errors import ConfigError

DEFAULT_BASE_URL = "api.nature.global"
DEFAULT_CONFIG_PATH = "config.yml"
DEFAULT_REFRESH_INTERVAL_S = 15.0


class NatureRemoSettings(BaseModel):
    """Remote API section.

    Attributes:
        api_key: Static bearer credential for the Nature Remo cloud API.
        base_url: API host, without scheme. Empty falls back to the default.
        humidity_offset_source: Device field exported as
            ``nature_remo_humidity_offset``. Defaults to ``temperature_offset``
            for compatibility with existing dashboards.
        refresh_interval_s: Seconds between refresh ticks.
        max_in_flight: Optional cap on concurrently running refresh cycles.
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    humidity_offset_source: Literal["temperature_offset", "humidity_offset"] = (
        "temperature_offset"
    )
    refresh_interval_s: float = DEFAULT_REFRESH_INTERVAL_S
    max_in_flight: int | None = None

    @field_validator("api_key")
    @classmethod
    def api_key_must_be_set(cls, v: str) -> str:
        """Reject an empty API key."""
        if not v.strip():
            raise ValueError("nature_remo.api_key must not be empty")
        return v

    @field_validator("base_url", mode="before")
    @classmethod
    def base_url_default_when_empty(cls, v: object) -> object:
        """Treat a null or empty base URL as the well-known default host."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_BASE_URL
        return v

    @field_validator("refresh_interval_s")
    @classmethod
    def refresh_interval_must_be_positive(cls, v: float) -> float:
        """Validate the refresh interval is strictly positive."""
        if v <= 0:
            raise ValueError("nature_remo.refresh_interval_s must be > 0")
        return v

    @field_validator("max_in_flight")
    @classmethod
    def max_in_flight_must_be_positive(cls, v: int | None) -> int | None:
        """Validate the in-flight cap, when set, is at least one."""
        if v is not None and v < 1:
            raise ValueError("nature_remo.max_in_flight must be >= 1")
        return v


class PromHttpSettings(BaseModel):
    """Scrape endpoint section.

    Attributes:
        listen_address: ``host:port`` (or ``:port``) to bind ``/metrics`` on.
    """

    listen_address: str

    @field_validator("listen_address")
    @classmethod
    def listen_address_must_be_set(cls, v: str) -> str:
        """Reject an empty listen address."""
        if not v.strip():
            raise ValueError("promhttp.listen_address must not be empty")
        return v


class ExporterSettings(BaseSettings):
    """Top-level exporter configuration.

    Values passed to the constructor (normally the parsed YAML document) are
    overlaid by ``REMO_*`` environment variables.

    Attributes:
        nature_remo: Remote API settings.
        promhttp: Scrape endpoint settings.
    """

    nature_remo: NatureRemoSettings
    promhttp: PromHttpSettings

    model_config = SettingsConfigDict(
        env_prefix="REMO_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Let environment variables override values parsed from the file."""
        return (env_settings, init_settings)


def load_settings(path: str | Path = DEFAULT_CONFIG_PATH) -> ExporterSettings:
    """Load and validate exporter settings from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If the file is missing or unreadable, is not UTF-8 or
            valid YAML, has non-string top-level keys, or fails validation.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"couldn't open configuration file: {config_path}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"configuration file {config_path} is not valid UTF-8: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"malformed configuration file {config_path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(
            f"configuration file {config_path} must contain a mapping at the top level"
        )
    if any(not isinstance(key, str) for key in raw):
        raise ConfigError(f"configuration file {config_path} has non-string top-level keys")

    try:
        return ExporterSettings(**raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration in {config_path}: {exc}") from exc
