"""Glue between click commands and the async command layer."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from convertsave.cli.exit_codes import ExitCode
from convertsave.cli.output import error_exit, exit_code_for
from convertsave.commands import CommandContext, CommandError
from convertsave.exceptions import ConvertSaveError

T = TypeVar("T")


def get_command_context(ctx: click.Context) -> CommandContext:
    """Return the CommandContext for this invocation, creating it on first use.

    Tests inject a prepared context through ``obj={"command_context": ...}``.
    """
    obj = ctx.ensure_object(dict)
    if "command_context" not in obj:
        try:
            obj["command_context"] = CommandContext.create()
        except (ConvertSaveError, ValueError) as e:
            error_exit(f"Invalid configuration: {e}", ExitCode.GENERAL_ERROR)
    return obj["command_context"]


def run_async(
    ctx: click.Context,
    func: Callable[..., Awaitable[T]],
    *,
    json_output: bool = False,
    **kwargs: Any,
) -> T:
    """Run a command function to completion, exiting on CommandError."""
    command_ctx = get_command_context(ctx)
    try:
        return asyncio.run(func(command_ctx, **kwargs))
    except CommandError as e:
        error_exit(str(e), exit_code_for(e), json_output)
    except KeyboardInterrupt:
        error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)
