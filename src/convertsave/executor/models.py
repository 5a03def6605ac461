"""Data models for planned and executed conversions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from convertsave.tools.models import ToolId


@dataclass(frozen=True)
class PostRename:
    """Move a tool's fixed-name output to the allocated destination.

    LibreOffice always names its output ``{input-stem}.{fmt}`` inside the
    --outdir; it writes into a private staging directory that is removed
    after the move.
    """

    source: Path
    target: Path
    staging_dir: Path | None = None


@dataclass(frozen=True)
class HeicTilePlan:
    """Multi-pass HEIC reassembly through ffmpeg.

    Attributes:
        input_path: HEIC/HEIF source.
        output_path: Final destination.
        output_ext: Target extension.
        fallback_argv: Single-pass arguments used when the file turns out
            not to be tiled.
    """

    input_path: Path
    output_path: Path
    output_ext: str
    fallback_argv: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConversionPlan:
    """Everything needed to run one conversion.

    ``argv`` excludes the program itself; ``command`` prepends tool_path.
    ``env`` holds overrides merged over the inherited environment.
    """

    tool: ToolId
    input_path: Path
    output_path: Path
    tool_path: Path | None = None
    argv: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    heic: HeicTilePlan | None = None
    post_rename: PostRename | None = None
    copy_only: bool = False

    @property
    def command(self) -> list[str]:
        if self.tool_path is None:
            return list(self.argv)
        return [str(self.tool_path), *self.argv]

    @property
    def output_ext(self) -> str:
        return self.output_path.suffix.lstrip(".").lower()


@dataclass(frozen=True)
class ExecutionResult:
    """Successful conversion outcome."""

    output_path: Path
    stdout: str = ""
    stderr: str = ""
