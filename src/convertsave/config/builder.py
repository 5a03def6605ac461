"""Layered settings: defaults, then settings.toml, then environment, then CLI.

Each layer is a flat SettingsSource whose field names are
``<section>_<option>``; the builder keeps the last non-None value per key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from convertsave.config.env import (
    ENV_API_URL,
    ENV_LOG_FILE,
    ENV_LOG_FORMAT,
    ENV_LOG_LEVEL,
    ENV_SERVER_BIND,
    ENV_SERVER_PORT,
    EnvReader,
)
from convertsave.config.models import (
    AppSettings,
    LicenseConfig,
    LoggingConfig,
    ServerConfig,
)

logger = logging.getLogger(__name__)


@dataclass
class SettingsSource:
    """One layer of settings. None means the layer leaves the key alone."""

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None

    # Server
    server_bind: str | None = None
    server_port: int | None = None

    # License
    license_api_url: str | None = None


class SettingsBuilder:
    """Accumulates SettingsSources, last non-None value wins.

    Example:
        builder = SettingsBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        settings = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._origins: dict[str, str] = {}

    def apply(self, source: SettingsSource, source_name: str = "unknown") -> None:
        """Apply a source, overriding existing values with its non-None ones."""
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._origins[field_obj.name] = source_name

    def origin(self, key: str) -> str:
        """Name of the source that supplied a value ("default" if none did)."""
        return self._origins.get(key, "default")

    def _section(self, prefix: str) -> dict[str, Any]:
        """Layered values whose key starts with ``prefix_``, prefix removed."""
        head = f"{prefix}_"
        return {
            key[len(head) :]: value
            for key, value in self._values.items()
            if key.startswith(head)
        }

    def build(self) -> AppSettings:
        """Assemble AppSettings; unset values keep the model defaults.

        Raises:
            ValueError: If a layered value fails model validation.
        """
        return AppSettings(
            logging=LoggingConfig(**self._section("logging")),
            server=ServerConfig(**self._section("server")),
            license=LicenseConfig(**self._section("license")),
        )


def source_from_file(file_config: dict[str, Any]) -> SettingsSource:
    """Flatten the ``[logging]``, ``[server]`` and ``[license]`` tables."""
    values: dict[str, Any] = {}
    for section in ("logging", "server", "license"):
        for option, value in file_config.get(section, {}).items():
            values[f"{section}_{option}"] = value

    known = {f.name for f in fields(SettingsSource)}
    unknown = sorted(set(values) - known)
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))

    if "logging_file" in values:
        log_file = values["logging_file"]
        values["logging_file"] = Path(log_file).expanduser() if log_file else None
    return SettingsSource(**{k: v for k, v in values.items() if k in known})


def source_from_env(reader: EnvReader) -> SettingsSource:
    """Create a SettingsSource from CONVERTSAVE_* environment variables."""
    return SettingsSource(
        logging_level=reader.get_str(ENV_LOG_LEVEL),
        logging_file=reader.get_path(ENV_LOG_FILE, must_exist=False),
        logging_format=reader.get_str(ENV_LOG_FORMAT),
        server_bind=reader.get_str(ENV_SERVER_BIND),
        server_port=reader.get_int(ENV_SERVER_PORT),
        license_api_url=reader.get_str(ENV_API_URL),
    )
