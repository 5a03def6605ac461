"""File utilities: output-name allocation, file info and folder reveal."""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - launching the platform file manager
import time
from dataclasses import asdict, dataclass
from pathlib import Path

from convertsave.core.platform import Platform, current_platform
from convertsave.exceptions import FilesystemError, describe_os_error

logger = logging.getLogger(__name__)

# Highest "(n)" suffix tried before falling back to a timestamp suffix
MAX_NAME_COUNTER = 10_000


def unique_output_path(directory: Path, stem: str, ext: str) -> Path:
    """Produce a destination path that does not collide with existing files.

    Tries ``{stem}.{ext}``, then ``{stem} (1).{ext}``, ``{stem} (2).{ext}``
    and so on. Past MAX_NAME_COUNTER the current Unix time is used instead.

    Args:
        directory: Destination directory.
        stem: File name without extension.
        ext: Extension without leading dot.

    Returns:
        A path inside ``directory`` that did not exist when checked.
    """
    ext = ext.lstrip(".")
    candidate = directory / f"{stem}.{ext}"
    if not candidate.exists():
        return candidate

    for counter in range(1, MAX_NAME_COUNTER + 1):
        candidate = directory / f"{stem} ({counter}).{ext}"
        if not candidate.exists():
            return candidate

    fallback = directory / f"{stem} ({int(time.time())}).{ext}"
    logger.warning("Name counter exhausted for %s, using %s", stem, fallback.name)
    return fallback


@dataclass(frozen=True)
class FileInfo:
    """Basic file details shown next to a dropped file."""

    name: str
    size: int
    extension: str

    def to_dict(self) -> dict:
        return asdict(self)


def get_file_info(path: Path) -> FileInfo:
    """Return name, size and normalized extension for a file.

    Raises:
        FilesystemError: If the file cannot be stat'ed.
    """
    try:
        size = path.stat().st_size
    except OSError as e:
        raise describe_os_error(e, path, "read") from e
    return FileInfo(
        name=path.name,
        size=size,
        extension=path.suffix.lstrip(".").lower(),
    )


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if needed.

    Raises:
        FilesystemError: If the directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise describe_os_error(e, path, "create folder") from e
    return path


def reveal_in_file_manager(path: Path, platform: Platform | None = None) -> None:
    """Open a folder in the file manager, selecting the file when given one.

    Args:
        path: Folder to open, or file to reveal.
        platform: Platform override.

    Raises:
        FilesystemError: If the path does not exist or the manager cannot start.
    """
    plat = platform or current_platform()
    if not path.exists():
        raise FilesystemError(f"Not found: {path}", path=path)

    args = plat.file_manager_command(path, reveal=path.is_file())
    try:
        subprocess.Popen(  # nosec B603 - fixed file manager command
            args,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=plat.creation_flags(),
        )
    except OSError as e:
        raise FilesystemError(f"Failed to open folder: {e}", path=path) from e
