"""HEIC tile-grid reassembly through ffmpeg.

Phone cameras store HEIC photos as a grid of 512x512 HEVC tiles plus the
logical image size and an optional rotation. ffmpeg cannot decode such a
grid in one pass, so the conversion runs in four steps:

1. probe:    ``-i in -f null -`` and parse the "Tile Grid" stream line
2. extract:  write every tile as tile_NN.png into a private temp directory
3. stitch:   ``tile=COLSxROWS`` into stitched.png
4. finalize: crop to the logical size, rotate, encode the target format

The temp directory is removed whether or not the conversion succeeds.
"""

from __future__ import annotations

import logging
import math
import os
import re
import shutil
import tempfile
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from convertsave.core.subprocess_utils import CommandOutput
from convertsave.exceptions import ConversionError
from convertsave.executor.errors import classify_failure
from convertsave.executor.models import HeicTilePlan
from convertsave.tools.models import ToolId

logger = logging.getLogger(__name__)

TILE_SIZE = 512
TILE_PATTERN = "tile_%02d.png"
STITCHED_NAME = "stitched.png"

_GRID_SIZE_RE = re.compile(r",\s*(\d+)x(\d+)")
_ROTATION_RE = re.compile(r"rotation of (-?\d+(?:\.\d+)?) degrees")

_ROTATION_FILTERS = {
    -90: "transpose=1",
    90: "transpose=2",
    180: "hflip,vflip",
    -180: "hflip,vflip",
}

CommandRunner = Callable[[list[str]], Awaitable[CommandOutput]]


@dataclass(frozen=True)
class TileGridInfo:
    """Logical size and rotation of a tiled HEIC image."""

    width: int
    height: int
    rotation: int | None = None

    @property
    def columns(self) -> int:
        return math.ceil(self.width / TILE_SIZE)

    @property
    def rows(self) -> int:
        return math.ceil(self.height / TILE_SIZE)

    @property
    def stitched_size(self) -> tuple[int, int]:
        return self.columns * TILE_SIZE, self.rows * TILE_SIZE


def parse_tile_grid(stderr: str) -> TileGridInfo | None:
    """Find the tile grid stream in ffmpeg's diagnostic output.

    Returns:
        TileGridInfo, or None if the file is not a tiled HEIC.
    """
    for line in stderr.splitlines():
        if "Tile Grid:" not in line or "hevc" not in line or "default" not in line:
            continue
        size = _GRID_SIZE_RE.search(line)
        if size is None:
            continue
        rotation = None
        rotation_match = _ROTATION_RE.search(stderr)
        if rotation_match:
            rotation = int(round(float(rotation_match.group(1))))
            if rotation not in _ROTATION_FILTERS:
                rotation = None
        return TileGridInfo(int(size.group(1)), int(size.group(2)), rotation)
    return None


def finalize_filter(grid: TileGridInfo) -> str | None:
    """Crop and rotation filter chain for the final pass, if any is needed."""
    parts: list[str] = []
    stitched_w, stitched_h = grid.stitched_size
    if stitched_w > grid.width or stitched_h > grid.height:
        parts.append(f"crop={grid.width}:{grid.height}:0:0")
    if grid.rotation is not None:
        parts.append(_ROTATION_FILTERS[grid.rotation])
    return ",".join(parts) if parts else None


def probe_args(in_path: Path) -> list[str]:
    return ["-hide_banner", "-i", str(in_path), "-f", "null", "-"]


def extract_args(in_path: Path, work_dir: Path) -> list[str]:
    return [
        "-hide_banner", "-y",
        "-i", str(in_path),
        "-map", "0:g:0",
        str(work_dir / TILE_PATTERN),
    ]


def stitch_args(grid: TileGridInfo, work_dir: Path) -> list[str]:
    return [
        "-hide_banner", "-y",
        "-i", str(work_dir / TILE_PATTERN),
        "-vf", f"tile={grid.columns}x{grid.rows}",
        "-frames:v", "1",
        str(work_dir / STITCHED_NAME),
    ]


def finalize_args(grid: TileGridInfo, work_dir: Path, out_path: Path) -> list[str]:
    args = ["-hide_banner", "-i", str(work_dir / STITCHED_NAME)]
    graph = finalize_filter(grid)
    if graph:
        args.extend(["-vf", graph])
    args.extend(["-frames:v", "1", "-y", str(out_path)])
    return args


def make_work_dir(temp_root: Path | None = None) -> Path:
    """Create a temp directory unique to this process and conversion."""
    root = temp_root if temp_root is not None else Path(tempfile.gettempdir())
    work_dir = root / f"convertsave_heic_{os.getpid()}_{uuid.uuid4().hex}"
    work_dir.mkdir(parents=True)
    return work_dir


def _check(step: str, output: CommandOutput, plan: HeicTilePlan) -> None:
    if output.ok:
        return
    logger.warning("HEIC %s step failed (rc=%d)", step, output.returncode)
    message = classify_failure(
        output.stderr, output.stdout, output.returncode, plan.output_ext, ToolId.FFMPEG
    )
    raise ConversionError(message, returncode=output.returncode, stderr=output.stderr)


async def reassemble(
    plan: HeicTilePlan,
    run: CommandRunner,
    temp_root: Path | None = None,
) -> CommandOutput:
    """Run the probe, extract, stitch and finalize passes.

    Args:
        plan: Input/output description.
        run: Runs ffmpeg with the given arguments (program excluded).
        temp_root: Parent for the work directory (system temp by default).

    Returns:
        Output of the final pass.

    Raises:
        ConversionError: If any pass fails.
    """
    probe = await run(probe_args(plan.input_path))
    grid = parse_tile_grid(probe.stderr)
    if grid is None:
        logger.debug("No tile grid in %s, converting in one pass", plan.input_path.name)
        output = await run(list(plan.fallback_argv))
        _check("convert", output, plan)
        return output

    logger.info(
        "Reassembling %dx%d HEIC from %dx%d tiles (rotation %s)",
        grid.width,
        grid.height,
        grid.columns,
        grid.rows,
        grid.rotation,
    )
    work_dir = make_work_dir(temp_root)
    try:
        _check("extract", await run(extract_args(plan.input_path, work_dir)), plan)
        _check("stitch", await run(stitch_args(grid, work_dir)), plan)
        output = await run(finalize_args(grid, work_dir, plan.output_path))
        _check("finalize", output, plan)
        return output
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)
        logger.debug("Removed HEIC work directory %s", work_dir)
