"""``convertsave serve``: run the local HTTP bridge for the desktop shell."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import sys

import click

from convertsave.cli.context import get_command_context
from convertsave.cli.exit_codes import ExitCode
from convertsave.commands import CommandContext

logger = logging.getLogger(__name__)


async def run_server(command_ctx: CommandContext, bind: str, port: int) -> int:
    """Serve until the task is cancelled; returns the process exit code."""
    from aiohttp import web

    from convertsave.server.app import create_app

    runner = web.AppRunner(create_app(command_ctx))
    await runner.setup()
    try:
        await web.TCPSite(runner, bind, port).start()
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error("Cannot listen on %s:%d: port already in use", bind, port)
        else:
            logger.error("Cannot listen on %s:%d: %s", bind, port, e)
        await runner.cleanup()
        return ExitCode.GENERAL_ERROR

    logger.info("Bridge listening on http://%s:%d (pid %d)", bind, port, os.getpid())
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        logger.info("Bridge stopped")
    return ExitCode.SUCCESS


@click.command("serve")
@click.option("--bind", help="Listen address (settings default: 127.0.0.1).")
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    help="Listen port (settings default: 8765).",
)
@click.pass_context
def serve_command(ctx: click.Context, bind: str | None, port: int | None) -> None:
    """Serve the command bridge used by the desktop shell.

    Flags win over CONVERTSAVE_SERVER_* variables, which win over
    settings.toml.

    \b
    Examples:
        convertsave serve
        convertsave serve --port 9000
    """
    command_ctx = get_command_context(ctx)
    server = command_ctx.settings.server
    try:
        code = asyncio.run(run_server(command_ctx, bind or server.bind, port or server.port))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        code = ExitCode.INTERRUPTED
    sys.exit(code)
