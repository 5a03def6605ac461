"""macOS diagnostics for a converter binary that fails without output.

A bundled ImageMagick that exits silently is almost always the wrong
architecture, missing a dylib, or quarantined by Gatekeeper. The dump
collected here goes to the log and is appended to the error message.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path

from convertsave.core.subprocess_utils import run_command_async

logger = logging.getLogger(__name__)

QUARANTINE_ATTR = "com.apple.quarantine"


def parse_otool_dependencies(output: str) -> list[str]:
    """Dependency paths from ``otool -L`` output (first line is the binary)."""
    deps: list[str] = []
    for line in output.splitlines()[1:]:
        line = line.strip()
        if not line:
            continue
        deps.append(line.split(" (", 1)[0].strip())
    return deps


def resolve_dependency(dep: str, binary: Path) -> Path | None:
    """Resolve a dylib reference relative to the binary, where possible.

    @rpath references cannot be resolved without the load commands and
    return None.
    """
    if dep.startswith("@executable_path/") or dep.startswith("@loader_path/"):
        return binary.parent / dep.split("/", 1)[1]
    if dep.startswith("@"):
        return None
    return Path(dep)


async def _capture(args: list[str | Path]) -> str:
    try:
        output = await run_command_async(args)
    except OSError as e:
        return f"(failed to run {args[0]}: {e})"
    return (output.stdout + output.stderr).strip()


async def collect_binary_diagnostics(binary: Path) -> str:
    """Gather architecture, permissions, dependencies and quarantine state.

    Also attempts to remove the quarantine attribute.

    Returns:
        Multi-line report.
    """
    lines = [f"Diagnostics for {binary}"]

    lines.append(f"file: {await _capture(['file', binary])}")
    lines.append(f"machine: {await _capture(['uname', '-m'])}")

    try:
        mode = binary.stat().st_mode
        lines.append(f"permissions: {stat.filemode(mode)}")
    except OSError as e:
        lines.append(f"permissions: unavailable ({e})")

    otool = await _capture(["otool", "-L", binary])
    lines.append("dependencies:")
    for dep in parse_otool_dependencies(otool):
        resolved = resolve_dependency(dep, binary)
        if resolved is None:
            state = "unresolved"
        else:
            state = "ok" if resolved.exists() else "MISSING"
        lines.append(f"  {dep} [{state}]")

    xattrs = await _capture(["xattr", "-l", binary])
    lines.append(f"xattr: {xattrs or '(none)'}")
    if QUARANTINE_ATTR in xattrs:
        result = await _capture(["xattr", "-d", QUARANTINE_ATTR, binary])
        lines.append(f"quarantine removal: {result or 'done'}")

    report = "\n".join(lines)
    logger.warning("%s", report)
    return report
