"""Unified CLI output formatting for JSON and human-readable output."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from convertsave.cli.exit_codes import ExitCode
from convertsave.core.json_utils import to_jsonable
from convertsave.exceptions import (
    ConversionError,
    FilesystemError,
    LicenseError,
    ProvisionError,
    ToolNotFoundError,
    UnsupportedConversionError,
)

format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format.",
)

_EXIT_CODES: tuple[tuple[type[BaseException], ExitCode], ...] = (
    (UnsupportedConversionError, ExitCode.UNSUPPORTED_CONVERSION),
    (ToolNotFoundError, ExitCode.TOOL_NOT_FOUND),
    (ConversionError, ExitCode.CONVERSION_FAILED),
    (ProvisionError, ExitCode.DOWNLOAD_FAILED),
    (LicenseError, ExitCode.LICENSE_ERROR),
    (FilesystemError, ExitCode.FILESYSTEM_ERROR),
)


def exit_code_for(error: BaseException) -> ExitCode:
    """Pick the exit code for an error, looking through CommandError causes."""
    cause = error.__cause__ or error
    for error_type, code in _EXIT_CODES:
        if isinstance(cause, error_type):
            return code
    return ExitCode.GENERAL_ERROR


def echo_json(value: Any) -> None:
    click.echo(json.dumps(to_jsonable(value), indent=2))


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.
    """
    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {
                        "code": code_name,
                        "message": message,
                    },
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)
