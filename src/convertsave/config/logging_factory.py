"""Merge command-line logging flags over the loaded settings."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from convertsave.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Return a copy of base with every non-None flag applied.

    Rotation limits always come from base. The copy goes through
    LoggingConfig validation, so a bad level or format raises ValueError.
    """
    flags = {
        "level": level,
        "file": file,
        "format": format,
        "include_stderr": include_stderr,
    }
    return replace(base, **{k: v for k, v in flags.items() if v is not None})


def configure_logging_from_cli(
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Apply the CLI flags on top of settings and install the handlers."""
    from convertsave.config.loader import get_settings
    from convertsave.logging import configure_logging

    config = build_logging_config(
        get_settings().logging,
        level=level,
        file=file,
        format=format,
        include_stderr=include_stderr,
    )
    configure_logging(config)
    return config
