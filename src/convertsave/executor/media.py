"""Argument planning for ffmpeg."""

from __future__ import annotations

import re
from pathlib import Path

from convertsave.formats.registry import (
    ANIMATED_FORMATS,
    NO_ALPHA_OUTPUTS,
    STATIC_IMAGE_OUTPUTS,
    VIDEO_FRAME_SOURCES,
    VIDEO_STILL_OUTPUTS,
)

# Outputs whose pixel formats need an explicit rgb24 after flattening
_RGB24_OUTPUTS = frozenset({"hdr", "pbm", "pgm", "ppm"})

AVIF_CODEC_ARGS = (
    "-c:v", "libaom-av1",
    "-still-picture", "1",
    "-cpu-used", "6",
    "-crf", "28",
    "-b:v", "0",
    "-row-mt", "1",
    "-frames:v", "1",
)

ICO_SCALE_FILTER = (
    "scale='min(256,iw)':'min(256,ih)':force_original_aspect_ratio=decrease"
)

MP4_ARGS = ("-pix_fmt", "yuv420p", "-profile:v", "main", "-movflags", "+faststart")

# Pixel formats that carry transparency
_ALPHA_PIX_FMT_PREFIXES = (
    "rgba", "bgra", "argb", "abgr", "ya", "yuva", "gbrap", "pal8",
)

_PIX_FMT_RE = re.compile(r"Stream #\d+:\d+.*?: Video: [^,]+, ([0-9a-z_]+)")


def flatten_filter(out_ext: str) -> str:
    """Filter graph that composites the input over a white canvas."""
    graph = "[1][0]scale=rw:rh[bg];[bg][0]overlay=shortest=1"
    if out_ext in _RGB24_OUTPUTS:
        graph += ",format=rgb24"
    return graph


def flatten_args(out_ext: str) -> list[str]:
    return [
        "-f", "lavfi",
        "-i", "color=c=white",
        "-filter_complex", flatten_filter(out_ext),
        "-q:v", "1",
    ]


def plan_avif_args(in_path: Path, out_path: Path, *, has_alpha: bool = False) -> list[str]:
    """AVIF still through libaom; alpha is encoded as a second stream."""
    args = ["-i", str(in_path), *AVIF_CODEC_ARGS]
    if has_alpha:
        args.extend(["-map", "0:v:0", "-map", "0:v:0", "-filter:v:1", "alphaextract"])
    args.extend(["-y", str(out_path)])
    return args


def plan_media_args(
    in_path: Path,
    out_path: Path,
    *,
    has_alpha: bool = False,
) -> list[str]:
    """Build the ffmpeg argument vector for a single-pass conversion."""
    in_ext = in_path.suffix.lstrip(".").lower()
    out_ext = out_path.suffix.lstrip(".").lower()

    if out_ext == "avif":
        return plan_avif_args(in_path, out_path, has_alpha=has_alpha)

    args = ["-i", str(in_path)]
    single_frame = False

    if in_ext in ANIMATED_FORMATS and out_ext in STATIC_IMAGE_OUTPUTS:
        single_frame = True

    if has_alpha and out_ext in NO_ALPHA_OUTPUTS:
        args.extend(flatten_args(out_ext))

    if out_ext == "ico":
        args.extend(["-vf", ICO_SCALE_FILTER])

    if out_ext == "mp4":
        args.extend(MP4_ARGS)

    if in_ext in VIDEO_FRAME_SOURCES and out_ext in VIDEO_STILL_OUTPUTS:
        single_frame = True

    if single_frame:
        args.extend(["-frames:v", "1"])

    if out_ext in STATIC_IMAGE_OUTPUTS:
        args.extend(["-update", "1"])
    args.extend(["-y", str(out_path)])
    return args


def probe_args(in_path: Path) -> list[str]:
    """ffmpeg arguments that print stream info for an input and exit."""
    return ["-hide_banner", "-i", str(in_path)]


def banner_pixel_format(stderr: str) -> str | None:
    """First video stream pixel format from ffmpeg's input banner."""
    match = _PIX_FMT_RE.search(stderr)
    return match.group(1) if match else None


def pixel_format_has_alpha(pix_fmt: str | None) -> bool:
    if not pix_fmt:
        return False
    return pix_fmt.startswith(_ALPHA_PIX_FMT_PREFIXES)
