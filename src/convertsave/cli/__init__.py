"""Command-line entry point: ``convertsave <command>``."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from convertsave.cli.exit_codes import ExitCode
from convertsave.cli.output import error_exit
from convertsave.config.models import LOG_LEVELS

logger = logging.getLogger(__name__)

# Logging is installed once per process, even when main() runs repeatedly
_logging_ready = False


def _setup_logging(level: str | None, file: Path | None, as_json: bool) -> None:
    global _logging_ready
    if _logging_ready:
        return

    from convertsave.config.logging_factory import configure_logging_from_cli
    from convertsave.feature_flags import log_enabled_flags

    try:
        configure_logging_from_cli(
            level=level, file=file, format="json" if as_json else None
        )
    except ValueError as e:
        error_exit(f"Invalid logging configuration: {e}", ExitCode.INVALID_ARGUMENTS)
    _logging_ready = True
    log_enabled_flags()


@click.group()
@click.version_option(package_name="convertsave")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Minimum level written to the log (settings default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write logs to this file instead of stderr.",
)
@click.option("--log-json", is_flag=True, help="Emit one JSON object per log line.")
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """ConvertSave: convert files with FFmpeg, ImageMagick, Pandoc and LibreOffice."""
    ctx.ensure_object(dict)
    _setup_logging(log_level, log_file, log_json)


def _register_commands() -> None:
    from convertsave.cli import convert, license, serve, tools

    for command in (
        convert.formats_command,
        convert.convert_command,
        convert.merge_pdf_command,
        convert.info_command,
        convert.open_command,
        tools.tools_group,
        license.license_group,
        serve.serve_command,
    ):
        main.add_command(command)


_register_commands()
