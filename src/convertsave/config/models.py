"""Settings dataclasses.

Each section validates itself on construction, so a bad value in
settings.toml, the environment or a CLI flag fails early with ValueError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_API_URL = "https://convertsave.com/api/license"

LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMATS = ("text", "json")


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value.lower() not in choices:
        expected = ", ".join(choices)
        raise ValueError(f"logging.{name}: expected one of {expected}; got {value!r}")


@dataclass
class LoggingConfig:
    """Where log lines go and how they look.

    ``file`` of None means stderr only. ``include_stderr`` duplicates file
    output to stderr. The file rotates at ``max_bytes`` keeping
    ``backup_count`` old copies.
    """

    level: str = "info"
    file: Path | None = None
    format: str = "text"
    include_stderr: bool = False
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self) -> None:
        _check_choice("level", self.level, LOG_LEVELS)
        _check_choice("format", self.format, LOG_FORMATS)


@dataclass
class ServerConfig:
    """Bind address of ``convertsave serve``; loopback unless overridden."""

    bind: str = "127.0.0.1"
    port: int = 8765

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"server.port out of range: {self.port}")


@dataclass
class LicenseConfig:
    """License server settings."""

    api_url: str = DEFAULT_API_URL

    def __post_init__(self) -> None:
        if not self.api_url.startswith(("http://", "https://")):
            raise ValueError(f"api_url must be an http(s) URL, got {self.api_url}")
        self.api_url = self.api_url.rstrip("/")


@dataclass
class AppSettings:
    """Top-level settings container.

    Built by SettingsBuilder from settings.toml, environment variables and
    CLI overrides.
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    license: LicenseConfig = field(default_factory=LicenseConfig)
