"""Turn converter failures into messages a user can act on."""

from __future__ import annotations

import re

from convertsave.core.platform import Platform, current_platform
from convertsave.formats.registry import HEIF_FORMATS, X_WINDOW_FORMATS
from convertsave.tools.models import ToolId

# SIGKILL as an exit status, seen when macOS Gatekeeper kills a binary
_KILLED_EXIT_CODE = 9

MSG_NO_STREAM = "This file has no required stream for this conversion."
MSG_CODEC_MISSING = "The required codec is not available in this FFmpeg build."
MSG_CANNOT_WRITE = "Cannot write to the output location."
MSG_INPUT_MISSING = "Input file not found."
MSG_KILLED = (
    "The converter was killed by macOS (likely quarantine, code signing or "
    "missing libraries)."
)
MSG_FAILED_TO_START = (
    "The converter failed to start (architecture or dependency mismatch)."
)

_CODEC_RE = re.compile(r"Unknown encoder|Encoder not found|libx265|libaom-av1")
_MISSING_RE = re.compile(r"No such file or directory|does not exist")


def raster_engine_required_message(ext: str) -> str:
    return f"{ext.upper()} output requires ImageMagick; please install it."


def _raster_only_mention(stderr_lower: str, output_ext: str) -> str | None:
    for ext in sorted(HEIF_FORMATS | X_WINDOW_FORMATS):
        if output_ext == ext or ext in stderr_lower:
            return ext
    return None


def classify_failure(
    stderr: str,
    stdout: str,
    returncode: int,
    output_ext: str,
    tool: ToolId,
    platform: Platform | None = None,
) -> str:
    """Map a failed run to a user-facing message.

    Checks run in priority order; the raw stderr is the fallback.
    """
    plat = platform or current_platform()

    if "does not contain any stream" in stderr:
        return MSG_NO_STREAM

    if "Unable to choose an output format" in stderr:
        ext = _raster_only_mention(stderr.lower(), output_ext.lower())
        if ext is not None:
            return raster_engine_required_message(ext)

    if _CODEC_RE.search(stderr):
        return MSG_CODEC_MISSING

    if "Invalid argument" in stderr and "Error opening output file" in stderr:
        return MSG_CANNOT_WRITE

    if _MISSING_RE.search(stderr):
        return MSG_INPUT_MISSING

    empty = not stderr.strip() and not stdout.strip()
    if empty and returncode == _KILLED_EXIT_CODE and plat.is_macos:
        return MSG_KILLED
    if empty:
        return MSG_FAILED_TO_START

    return stderr.strip()


def is_empty_output_failure(stdout: str, stderr: str, returncode: int) -> bool:
    return returncode != 0 and not stdout.strip() and not stderr.strip()
