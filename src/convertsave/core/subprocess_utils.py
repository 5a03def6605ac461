"""Child process helpers for ffmpeg, magick, pandoc, soffice and brew.

``run_command`` blocks with a timeout and suits quick version probes.
``run_command_async`` is what conversions and installers await.
"""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess  # nosec B404 - external tools are the whole point
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from convertsave.core.platform import Platform, current_platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutput:
    """Decoded streams and exit status of a finished child."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def is_empty(self) -> bool:
        return not (self.stdout.strip() or self.stderr.strip())


def merged_env(overrides: Mapping[str, str] | None) -> dict[str, str] | None:
    """os.environ plus overrides; None (inherit unchanged) when there are none."""
    return {**os.environ, **overrides} if overrides else None


class _Invocation:
    """Stringified argv plus debug logging around one child process."""

    def __init__(self, args: list[str | Path]) -> None:
        self.argv = [str(a) for a in args]
        self.tool = Path(self.argv[0]).name if self.argv else "unknown"
        self._started = time.monotonic()
        logger.debug(
            "Running %s",
            " ".join(self.argv),
            extra={"command": self.tool, "arg_count": len(self.argv)},
        )

    def finished(self, returncode: int) -> None:
        logger.debug(
            "%s exited with %d",
            self.tool,
            returncode,
            extra={
                "command": self.tool,
                "elapsed_seconds": round(time.monotonic() - self._started, 3),
                "returncode": returncode,
            },
        )


def run_command(
    args: list[str | Path],
    timeout: int = 120,
    env: Mapping[str, str] | None = None,
    platform: Platform | None = None,
    **kwargs: Any,
) -> tuple[str, str, int]:
    """Run a command to completion and return ``(stdout, stderr, returncode)``.

    An executable that does not exist yields ``("", "not found", -1)``
    rather than an exception.

    Args:
        args: Program and arguments; Paths are stringified.
        timeout: Seconds before the child is killed.
        env: Complete environment for the child, or None to inherit.
        platform: Used for Windows console suppression.
        **kwargs: Passed through to subprocess.run.

    Raises:
        subprocess.TimeoutExpired: The child outlived ``timeout``.
    """
    plat = platform or current_platform()
    call = _Invocation(args)
    try:
        result = subprocess.run(  # nosec B603 - argv built by callers, no shell
            call.argv,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            env=None if env is None else dict(env),
            creationflags=plat.creation_flags(),
            **kwargs,
        )
    except FileNotFoundError:
        return "", "not found", -1
    except subprocess.TimeoutExpired:
        logger.warning(
            "%s killed after %ds",
            call.tool,
            timeout,
            extra={"command": call.tool, "timeout_seconds": timeout},
        )
        raise

    call.finished(result.returncode)
    return result.stdout or "", result.stderr or "", result.returncode


async def run_command_async(
    args: list[str | Path],
    env: Mapping[str, str] | None = None,
    platform: Platform | None = None,
) -> CommandOutput:
    """Await a child process and capture both streams.

    No timeout applies; once spawned the child always runs to exit.

    Raises:
        FileNotFoundError: The executable is missing.
        PermissionError: The executable is not runnable.
    """
    plat = platform or current_platform()
    call = _Invocation(args)

    extra: dict[str, Any] = {}
    if plat.creation_flags():
        extra["creationflags"] = plat.creation_flags()

    process = await asyncio.create_subprocess_exec(
        *call.argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=None if env is None else dict(env),
        **extra,
    )
    out, err = await process.communicate()
    returncode = -1 if process.returncode is None else process.returncode
    call.finished(returncode)

    return CommandOutput(
        stdout=out.decode("utf-8", errors="replace"),
        stderr=err.decode("utf-8", errors="replace"),
        returncode=returncode,
    )
