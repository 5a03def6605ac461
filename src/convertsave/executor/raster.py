"""Argument planning for ImageMagick (``magick``)."""

from __future__ import annotations

import shlex
from pathlib import Path

from convertsave.core.platform import Platform
from convertsave.formats.registry import (
    ANIMATED_FORMATS,
    JPEG2000_FORMATS,
    NO_ALPHA_OUTPUTS,
    VECTOR_FORMATS,
)

FLATTEN_ARGS = ("-background", "white", "-flatten")

_QUALITY_ARGS: dict[str, tuple[str, ...]] = {
    "ico": (
        "-resize", "256x256",
        "-gravity", "center",
        "-extent", "256x256",
        "-background", "transparent",
    ),
    "heic": ("-quality", "85"),
    "heif": ("-quality", "85"),
    "avif": ("-quality", "85"),
    "jxl": ("-quality", "90"),
    "webp": ("-quality", "90"),
    "jpg": ("-quality", "90"),
    "jpeg": ("-quality", "90"),
    "tiff": ("-quality", "100"),
    "tif": ("-quality", "100"),
    "exr": ("-quality", "100"),
    "hdr": ("-quality", "100"),
    "dpx": ("-quality", "100"),
    "pdf": ("-compress", "jpeg", "-density", "300"),
}


def quality_args(out_ext: str) -> list[str]:
    """Per-format quality and preparation flags."""
    if out_ext in _QUALITY_ARGS:
        return list(_QUALITY_ARGS[out_ext])
    if out_ext in JPEG2000_FORMATS:
        return ["-quality", "85"]
    if out_ext in VECTOR_FORMATS:
        return ["-density", "300"]
    return []


def input_token(in_path: Path, in_ext: str, out_ext: str) -> str:
    """Input path, with ``[0]`` appended when an animation becomes a still."""
    if in_ext in ANIMATED_FORMATS and out_ext not in ANIMATED_FORMATS:
        return f"{in_path}[0]"
    return str(in_path)


def needs_flatten(out_ext: str, has_alpha: bool) -> bool:
    return has_alpha and out_ext in NO_ALPHA_OUTPUTS


def split_advanced_options(extra: str | None) -> list[str]:
    """Tokenize user-supplied advanced options."""
    if not extra or not extra.strip():
        return []
    return shlex.split(extra)


def plan_raster_args(
    in_path: Path,
    out_path: Path,
    *,
    has_alpha: bool = False,
    extra: str | None = None,
) -> list[str]:
    """Build the magick argument vector.

    Layout: input (with optional frame selector), flatten flags, format
    flags, advanced options, output. Advanced options come after the
    defaults so they take precedence.
    """
    in_ext = in_path.suffix.lstrip(".").lower()
    out_ext = out_path.suffix.lstrip(".").lower()

    args = [input_token(in_path, in_ext, out_ext)]
    if needs_flatten(out_ext, has_alpha):
        args.extend(FLATTEN_ARGS)
    args.extend(quality_args(out_ext))
    args.extend(split_advanced_options(extra))
    args.append(str(out_path))
    return args


def alpha_probe_args(in_path: Path) -> list[str]:
    """Arguments for ``magick identify`` reporting the channel layout."""
    return ["identify", "-format", "%[channels]", f"{in_path}[0]"]


def channels_have_alpha(output: str) -> bool:
    """Interpret ``%[channels]`` output such as "srgba  4.0" or "gray  1.0".

    The colorspace token carries a trailing "a" when an alpha channel is
    present (srgba, graya, cmyka).
    """
    tokens = output.strip().split()
    return bool(tokens) and tokens[0].lower().endswith("a")


def raster_env(tool_path: Path, platform: Platform) -> dict[str, str]:
    """Environment overrides for a bundled ImageMagick on macOS.

    The binary at ``{home}/bin/magick`` loads its libraries, config and
    coder modules from sibling directories of ``home``.
    """
    if not platform.is_macos:
        return {}
    home = tool_path.parent.parent
    lib_dir = home / "lib"
    env = {
        "DYLD_LIBRARY_PATH": str(lib_dir),
        "MAGICK_HOME": str(home),
        "MAGICK_CONFIGURE_PATH": str(home / "etc" / "ImageMagick-7"),
    }
    for coders in sorted(lib_dir.glob("ImageMagick-*/modules-Q16HDRI/coders")):
        if coders.is_dir():
            env["MAGICK_CODER_MODULE_PATH"] = str(coders)
            break
    return env


MULTIPAGE_PDF_ARGS = ("-compress", "jpeg", "-density", "300")


def plan_multipage_pdf_args(in_paths: list[Path], out_path: Path) -> list[str]:
    """Combine several images into one PDF, one page per image."""
    return [*(str(p) for p in in_paths), *MULTIPAGE_PDF_ARGS, str(out_path)]
