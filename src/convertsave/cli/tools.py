"""``convertsave tools``: status, test, download, updates and custom paths."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import click

from convertsave import commands
from convertsave.cli.context import run_async
from convertsave.cli.output import echo_json, format_option
from convertsave.commands import CommandContext
from convertsave.core.formatting import format_status_mark, format_version
from convertsave.events import DOWNLOAD_PROGRESS
from convertsave.tools.models import PROVISIONABLE_TOOLS, ToolId

logger = logging.getLogger(__name__)

_PROVISIONABLE_NAMES = [t.value for t in PROVISIONABLE_TOOLS]
_CONFIGURABLE_NAMES = [t.value for t in ToolId if t.is_external]


@click.group("tools")
def tools_group() -> None:
    """Manage the external converters (FFmpeg, ImageMagick, Pandoc)."""


@tools_group.command("status")
@format_option
@click.pass_context
def status_command(ctx: click.Context, output_format: str) -> None:
    """Show which converters are available."""
    json_output = output_format == "json"
    status = run_async(ctx, commands.check_tools_status, json_output=json_output)
    if json_output:
        echo_json(status)
        return
    for name, tool_status in status.items():
        mark = format_status_mark(tool_status.available)
        click.echo(f"  {mark} {name:<12} {tool_status.path or 'not found'}")


@tools_group.command("test")
@click.argument("tool", type=click.Choice(_CONFIGURABLE_NAMES, case_sensitive=False))
@click.pass_context
def test_command(ctx: click.Context, tool: str) -> None:
    """Run a converter's version command."""
    click.echo(run_async(ctx, commands.test_tool, tool_name=tool))


def _echo_progress(event: dict[str, Any]) -> None:
    click.echo(f"[{event['status']}] {event['message']}")


async def _download_with_progress(command_ctx: CommandContext, tool: str) -> str:
    """Run download_tool and print its download-progress events as they arrive."""
    subscription = command_ctx.events.subscribe(DOWNLOAD_PROGRESS)
    task = asyncio.create_task(commands.download_tool(command_ctx, tool=tool))
    try:
        while True:
            next_event = asyncio.ensure_future(subscription.get())
            done, _ = await asyncio.wait(
                {task, next_event}, return_when=asyncio.FIRST_COMPLETED
            )
            if next_event in done:
                _echo_progress(next_event.result())
                continue
            next_event.cancel()
            break
        while subscription.pending():
            _echo_progress(await subscription.get())
        return task.result()
    finally:
        subscription.close()


@tools_group.command("download")
@click.argument("tool", type=click.Choice(_PROVISIONABLE_NAMES, case_sensitive=False))
@click.pass_context
def download_command(ctx: click.Context, tool: str) -> None:
    """Download (or update) a converter into the app data folder."""
    # Progress lines already include the final message
    run_async(ctx, _download_with_progress, tool=tool)


@tools_group.command("updates")
@format_option
@click.pass_context
def updates_command(ctx: click.Context, output_format: str) -> None:
    """Check for newer converter releases."""
    json_output = output_format == "json"
    updates = run_async(ctx, commands.check_for_updates, json_output=json_output)
    if json_output:
        echo_json(updates)
        return
    for name, info in updates.items():
        if not info.installed:
            click.echo(f"  {name:<12} not installed (latest: {format_version(info.latest_version)})")
            continue
        line = f"  {name:<12} {format_version(info.current_version)}"
        if info.update_available:
            line += f" -> {info.latest_version} available"
        elif info.latest_version is None:
            line += " (could not check)"
        else:
            line += " (up to date)"
        click.echo(line)


@tools_group.command("set-path")
@click.argument("tool", type=click.Choice(_CONFIGURABLE_NAMES, case_sensitive=False))
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def set_path_command(ctx: click.Context, tool: str, path: Path) -> None:
    """Use a specific binary for a converter."""
    run_async(ctx, commands.set_custom_tool_path, tool=tool, path=str(path))
    click.echo(f"Custom path for {tool} set to {path}")


@tools_group.command("clear-path")
@click.argument("tool", type=click.Choice(_CONFIGURABLE_NAMES, case_sensitive=False))
@click.pass_context
def clear_path_command(ctx: click.Context, tool: str) -> None:
    """Forget the custom binary for a converter."""
    run_async(ctx, commands.clear_custom_tool_path, tool=tool)
    click.echo(f"Custom path for {tool} cleared")
