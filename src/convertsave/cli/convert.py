"""File commands: formats, convert, merge-pdf, info, open."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from convertsave import commands
from convertsave.cli.context import run_async
from convertsave.cli.output import echo_json, format_option
from convertsave.core.formatting import format_file_size

logger = logging.getLogger(__name__)


@click.command("formats")
@click.argument("extension")
@format_option
@click.pass_context
def formats_command(ctx: click.Context, extension: str, output_format: str) -> None:
    """List the formats a file type can be converted to.

    Examples:

    \b
        convertsave formats mp4
        convertsave formats .PNG --format json
    """
    json_output = output_format == "json"
    options = run_async(
        ctx, commands.get_available_formats, json_output=json_output, input_extension=extension
    )
    if json_output:
        echo_json(options)
        return
    if not options:
        click.echo(f"No conversions available for '{extension}'.")
        return
    for option in options:
        click.echo(f"  {option.format:<8} {option.display_name:<28} ({option.tool})")


@click.command("convert")
@click.argument("input_path", type=click.Path(path_type=Path))
@click.option("--to", "-t", "output_format", required=True, help="Target format (e.g., mp3).")
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output folder (default: ~/Documents/ConvertSave/Converted).",
)
@click.option(
    "--options",
    "advanced_options",
    default=None,
    help="Extra converter arguments, appended after the defaults.",
)
@click.pass_context
def convert_command(
    ctx: click.Context,
    input_path: Path,
    output_format: str,
    output_dir: Path | None,
    advanced_options: str | None,
) -> None:
    """Convert a file to another format.

    Examples:

    \b
        convertsave convert clip.mp4 --to mp3
        convertsave convert logo.png -t jpg -o ~/Desktop
    """
    output = run_async(
        ctx,
        commands.convert_file,
        input_path=str(input_path),
        output_format=output_format,
        output_directory=str(output_dir) if output_dir else None,
        advanced_options=advanced_options,
    )
    click.echo(output)


@click.command("merge-pdf")
@click.argument("images", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output folder (default: ~/Documents/ConvertSave/Converted).",
)
@click.pass_context
def merge_pdf_command(
    ctx: click.Context, images: tuple[Path, ...], output_dir: Path | None
) -> None:
    """Combine images into a single multi-page PDF."""
    output = run_async(
        ctx,
        commands.convert_images_to_multipage_pdf,
        input_paths=[str(p) for p in images],
        output_directory=str(output_dir) if output_dir else None,
    )
    click.echo(output)


@click.command("info")
@click.argument("path", type=click.Path(path_type=Path))
@format_option
@click.pass_context
def info_command(ctx: click.Context, path: Path, output_format: str) -> None:
    """Show name, size and extension of a file."""
    json_output = output_format == "json"
    info = run_async(ctx, commands.get_file_info, json_output=json_output, path=str(path))
    if json_output:
        echo_json(info)
        return
    click.echo(f"Name:      {info.name}")
    click.echo(f"Size:      {format_file_size(info.size)}")
    click.echo(f"Extension: {info.extension or '(none)'}")


@click.command("open")
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
def open_command(ctx: click.Context, path: Path) -> None:
    """Open a folder, or reveal a file, in the file manager."""
    run_async(ctx, commands.open_folder, path=str(path))
