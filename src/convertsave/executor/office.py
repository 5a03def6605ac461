"""Argument planning for LibreOffice (``soffice``).

soffice ignores the requested file name: it always writes
``{input-stem}.{fmt}`` into ``--outdir``. The plan points --outdir at a
private staging directory beside the destination and carries a
PostRename that moves the result to the allocated output path.
"""

from __future__ import annotations

import uuid
from pathlib import Path

from convertsave.executor.models import PostRename

STAGING_PREFIX = ".convertsave_office_"


def staging_dir_for(out_path: Path) -> Path:
    return out_path.parent / f"{STAGING_PREFIX}{uuid.uuid4().hex}"


def plan_office_args(
    in_path: Path, out_path: Path, staging_dir: Path
) -> tuple[list[str], PostRename]:
    """Build the soffice argument vector and its follow-up rename.

    Returns:
        Tuple of (argv, post_rename).
    """
    out_ext = out_path.suffix.lstrip(".").lower()
    argv = [
        "--headless",
        "--convert-to", out_ext,
        "--outdir", str(staging_dir),
        str(in_path),
    ]
    produced = staging_dir / f"{in_path.stem}.{out_ext}"
    return argv, PostRename(source=produced, target=out_path, staging_dir=staging_dir)
