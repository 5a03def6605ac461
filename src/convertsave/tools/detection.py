"""Tool version detection.

Runs a resolved binary with its version flag and extracts the version from
the banner.
"""

from __future__ import annotations

import logging
import re
import subprocess  # nosec B404 - subprocess is required for tool detection
from dataclasses import dataclass
from pathlib import Path

from convertsave.core.platform import Platform
from convertsave.core.subprocess_utils import run_command
from convertsave.tools.models import ToolId

logger = logging.getLogger(__name__)

# Timeout for version commands (seconds)
DETECTION_TIMEOUT = 10


@dataclass(frozen=True)
class VersionProbe:
    """How to ask a tool for its version."""

    flag: str
    pattern: str


VERSION_PROBES: dict[ToolId, VersionProbe] = {
    # "ffmpeg version 7.1-full_build-www.gyan.dev" / "ffmpeg version N-118000-g..."
    ToolId.FFMPEG: VersionProbe("-version", r"ffmpeg version (\S+)"),
    # "Version: ImageMagick 7.1.1-39 Q16-HDRI x64"
    ToolId.IMAGEMAGICK: VersionProbe("--version", r"ImageMagick (\S+)"),
    # "pandoc 3.6.1"
    ToolId.PANDOC: VersionProbe("--version", r"pandoc(?:\.exe)? (\S+)"),
    # "LibreOffice 24.8.2.1 ..."
    ToolId.LIBREOFFICE: VersionProbe("--version", r"LibreOffice (\S+)"),
}


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles various version formats:
    - "7.1.1" -> (7, 1, 1)
    - "n7.1" -> (7, 1)  (ffmpeg nightlies)
    - "7.1.1-39" -> (7, 1, 1)  (ImageMagick patch level is dropped)

    Args:
        version_str: Version string to parse.

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    version_str = version_str.lstrip("nv")

    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None

    parts = match.group(1).split(".")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        return None


def version_banner(
    tool: ToolId, path: Path, platform: Platform | None = None
) -> tuple[str, int]:
    """Run the tool's version command.

    Returns:
        Tuple of (combined output, returncode). A timeout, or a file that
        cannot be executed, is reported as returncode -1.
    """
    probe = VERSION_PROBES[tool]
    try:
        stdout, stderr, rc = run_command(
            [path, probe.flag], timeout=DETECTION_TIMEOUT, platform=platform
        )
    except subprocess.TimeoutExpired:
        return "timeout", -1
    except OSError as e:
        logger.debug("Cannot execute %s: %s", path, e)
        return e.strerror or str(e), -1
    return (stdout or stderr), rc


def extract_version(tool: ToolId, banner: str) -> str | None:
    """Pull the version token out of a version banner."""
    probe = VERSION_PROBES.get(tool)
    if probe is None:
        return None
    match = re.search(probe.pattern, banner)
    return match.group(1) if match else None


def detect_version(
    tool: ToolId, path: Path, platform: Platform | None = None
) -> str | None:
    """Detect the version of a tool binary.

    Returns:
        Version string, or None if the binary fails or prints no version.
    """
    banner, rc = version_banner(tool, path, platform)
    if rc != 0:
        logger.debug("Version probe for %s failed (rc=%d)", tool.value, rc)
        return None
    version = extract_version(tool, banner)
    if version is None:
        logger.warning("Could not find %s version in banner", tool.value)
    return version
