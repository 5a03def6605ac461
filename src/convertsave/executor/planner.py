"""Build the command line for one conversion.

plan_conversion() is pure: it only turns (tool, paths, options, probed
alpha) into a ConversionPlan. prepare_plan() adds the alpha probe, which
runs the tool once against the input, and only when the output format
cannot store transparency.
"""

from __future__ import annotations

import logging
from pathlib import Path

from convertsave.core.platform import Platform, current_platform
from convertsave.core.subprocess_utils import merged_env, run_command_async
from convertsave.executor import document, media, office, raster
from convertsave.executor.models import ConversionPlan, HeicTilePlan
from convertsave.formats.registry import HEIF_FORMATS, NO_ALPHA_OUTPUTS
from convertsave.formats.routing import normalize_extension
from convertsave.tools.models import ToolId

logger = logging.getLogger(__name__)


def _ext(path: Path) -> str:
    return normalize_extension(path.suffix)


def plan_conversion(
    tool: ToolId,
    in_path: Path,
    out_path: Path,
    tool_path: Path | None,
    extra: str | None = None,
    *,
    has_alpha: bool | None = None,
    platform: Platform | None = None,
) -> ConversionPlan:
    """Plan a conversion for the routed tool.

    Args:
        tool: Tool chosen by the routing table.
        in_path: Source file.
        out_path: Allocated destination.
        tool_path: Resolved binary (None for RENAME).
        extra: Advanced options string (ImageMagick and pandoc only).
        has_alpha: Probed transparency of the input; None means unknown
            and is treated as opaque.
        platform: Platform override.

    Raises:
        ValueError: If an external tool is planned without a binary.
    """
    plat = platform or current_platform()
    alpha = bool(has_alpha)

    if tool is ToolId.RENAME:
        return ConversionPlan(tool, in_path, out_path, copy_only=True)

    if tool_path is None:
        raise ValueError(f"No binary given for {tool.display_name}")

    if tool is ToolId.IMAGEMAGICK:
        return ConversionPlan(
            tool,
            in_path,
            out_path,
            tool_path=tool_path,
            argv=tuple(raster.plan_raster_args(in_path, out_path, has_alpha=alpha, extra=extra)),
            env=raster.raster_env(tool_path, plat),
        )

    if tool is ToolId.FFMPEG:
        argv = tuple(media.plan_media_args(in_path, out_path, has_alpha=alpha))
        heic = None
        if _ext(in_path) in HEIF_FORMATS:
            heic = HeicTilePlan(
                input_path=in_path,
                output_path=out_path,
                output_ext=_ext(out_path),
                fallback_argv=argv,
            )
        return ConversionPlan(
            tool, in_path, out_path, tool_path=tool_path, argv=argv, heic=heic
        )

    if tool is ToolId.PANDOC:
        return ConversionPlan(
            tool,
            in_path,
            out_path,
            tool_path=tool_path,
            argv=tuple(document.plan_document_args(in_path, out_path, extra)),
        )

    if tool is ToolId.LIBREOFFICE:
        argv, post_rename = office.plan_office_args(
            in_path, out_path, office.staging_dir_for(out_path)
        )
        return ConversionPlan(
            tool,
            in_path,
            out_path,
            tool_path=tool_path,
            argv=tuple(argv),
            post_rename=post_rename,
        )

    raise ValueError(f"Unknown tool: {tool}")


def needs_alpha_probe(tool: ToolId, in_path: Path, out_path: Path) -> bool:
    """Whether the plan depends on the input's transparency."""
    out_ext = _ext(out_path)
    if tool is ToolId.IMAGEMAGICK:
        return out_ext in NO_ALPHA_OUTPUTS
    if tool is ToolId.FFMPEG:
        if _ext(in_path) in HEIF_FORMATS:
            return False
        return out_ext in NO_ALPHA_OUTPUTS or out_ext == "avif"
    return False


async def probe_alpha(
    tool: ToolId,
    tool_path: Path,
    in_path: Path,
    platform: Platform | None = None,
) -> bool:
    """Ask the tool whether the input carries an alpha channel.

    A probe that cannot run or reports nothing counts as opaque.
    """
    plat = platform or current_platform()
    try:
        if tool is ToolId.IMAGEMAGICK:
            env = raster.raster_env(tool_path, plat)
            output = await run_command_async(
                [tool_path, *raster.alpha_probe_args(in_path)],
                env=merged_env(env),
                platform=plat,
            )
            if not output.ok:
                logger.debug("Alpha probe failed for %s: %s", in_path.name, output.stderr.strip())
                return False
            return raster.channels_have_alpha(output.stdout)

        if tool is ToolId.FFMPEG:
            # ffmpeg exits non-zero without an output file; the banner is what matters
            output = await run_command_async(
                [tool_path, *media.probe_args(in_path)], platform=plat
            )
            return media.pixel_format_has_alpha(media.banner_pixel_format(output.stderr))
    except OSError as e:
        logger.debug("Alpha probe could not run for %s: %s", in_path.name, e)
    return False


async def prepare_plan(
    tool: ToolId,
    in_path: Path,
    out_path: Path,
    tool_path: Path | None,
    extra: str | None = None,
    *,
    platform: Platform | None = None,
) -> ConversionPlan:
    """Probe transparency when it matters, then plan the conversion."""
    has_alpha = None
    if tool_path is not None and needs_alpha_probe(tool, in_path, out_path):
        has_alpha = await probe_alpha(tool, tool_path, in_path, platform)
        logger.debug("Input %s has alpha: %s", in_path.name, has_alpha)
    return plan_conversion(
        tool, in_path, out_path, tool_path, extra, has_alpha=has_alpha, platform=platform
    )
