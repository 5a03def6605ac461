"""Argument planning for pandoc."""

from __future__ import annotations

from pathlib import Path

from convertsave.executor.raster import split_advanced_options


def plan_document_args(
    in_path: Path, out_path: Path, extra: str | None = None
) -> list[str]:
    """``in -o out`` followed by any advanced options."""
    return [str(in_path), "-o", str(out_path), *split_advanced_options(extra)]
