"""Archive extraction for downloaded tools.

These functions are blocking; the provisioner runs them in a worker thread.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

import py7zr
from py7zr.exceptions import ArchiveError as SevenZipError

from convertsave.core.platform import Platform
from convertsave.exceptions import ArchiveError, MissingEntryError
from convertsave.tools.sources import ArchiveType, DownloadSpec

logger = logging.getLogger(__name__)


def make_executable(path: Path, platform: Platform) -> None:
    """Add owner-execute permission on Unix-like platforms."""
    if platform.is_windows:
        return
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR)


def list_tree(directory: Path) -> list[str]:
    """Relative paths of everything under a directory, for diagnostics."""
    if not directory.exists():
        return []
    return sorted(
        str(p.relative_to(directory)) for p in directory.rglob("*")
    )


def _entry_name(name: str) -> str:
    return PurePosixPath(name.replace("\\", "/")).name


def extract_binary_from_zip(
    archive_path: Path, binary_name: str, dest: Path, platform: Platform
) -> Path:
    """Copy the entry named binary_name out of a zip into dest.

    Raises:
        ArchiveError: If the zip is corrupt.
        MissingEntryError: If no entry has that file name.
    """
    try:
        with zipfile.ZipFile(archive_path) as zf:
            names = zf.namelist()
            for info in zf.infolist():
                if info.is_dir() or _entry_name(info.filename) != binary_name:
                    continue
                target = dest / binary_name
                with zf.open(info) as src, target.open("wb") as out:
                    shutil.copyfileobj(src, out)
                make_executable(target, platform)
                return target
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"Downloaded zip archive is corrupt: {e}") from e
    raise MissingEntryError(binary_name, names)


def extract_binary_from_tar(
    archive_path: Path, binary_name: str, dest: Path, platform: Platform
) -> Path:
    """Copy the member named binary_name out of a tar.gz/tar.xz into dest.

    Raises:
        ArchiveError: If the tar is corrupt.
        MissingEntryError: If no regular member has that file name.
    """
    try:
        with tarfile.open(archive_path, "r:*") as tf:
            names = tf.getnames()
            for member in tf.getmembers():
                if not member.isfile() or _entry_name(member.name) != binary_name:
                    continue
                src = tf.extractfile(member)
                if src is None:
                    continue
                target = dest / binary_name
                with src, target.open("wb") as out:
                    shutil.copyfileobj(src, out)
                make_executable(target, platform)
                return target
    except tarfile.TarError as e:
        raise ArchiveError(f"Downloaded tar archive is corrupt: {e}") from e
    raise MissingEntryError(binary_name, names)


def hoist_single_root(dest: Path, ignore: frozenset[str] = frozenset()) -> None:
    """If dest holds exactly one directory, move its contents up one level.

    Upstream tarballs usually wrap everything in a versioned folder such as
    ImageMagick-7.0.10/. Names in ignore (the downloaded archive) are skipped.
    """
    entries = [p for p in dest.iterdir() if p.name not in ignore]
    if len(entries) != 1 or not entries[0].is_dir():
        return
    root = entries[0]
    logger.debug("Hoisting contents of %s", root.name)
    for child in list(root.iterdir()):
        shutil.move(str(child), str(dest / child.name))
    root.rmdir()


def hoist_binary_siblings(dest: Path, binary_name: str) -> None:
    """Move everything beside the binary up to dest.

    Used for 7z archives whose binary sits in a subdirectory: the binary's
    DLLs and config files must stay next to it.
    """
    if (dest / binary_name).is_file():
        return
    for candidate in dest.rglob(binary_name):
        if not candidate.is_file():
            continue
        source_dir = candidate.parent
        logger.debug("Hoisting files from %s", source_dir)
        for child in list(source_dir.iterdir()):
            target = dest / child.name
            if target.exists():
                if target.is_dir():
                    shutil.rmtree(target)
                else:
                    target.unlink()
            shutil.move(str(child), str(target))
        return


def extract_tar_tree(archive_path: Path, dest: Path) -> None:
    """Unpack a whole tar archive and hoist a single versioned root.

    Raises:
        ArchiveError: If the tar is corrupt.
    """
    try:
        with tarfile.open(archive_path, "r:*") as tf:
            tf.extractall(dest, filter="data")
    except tarfile.TarError as e:
        raise ArchiveError(f"Downloaded tar archive is corrupt: {e}") from e
    hoist_single_root(dest, ignore=frozenset({archive_path.name}))


def extract_7z_tree(archive_path: Path, dest: Path, binary_name: str) -> None:
    """Unpack a whole 7z archive and bring the binary's folder to dest.

    Raises:
        ArchiveError: If the archive is corrupt.
    """
    try:
        with py7zr.SevenZipFile(archive_path, mode="r") as archive:
            archive.extractall(path=dest)
    except SevenZipError as e:
        raise ArchiveError(f"Downloaded 7z archive is corrupt: {e}") from e
    hoist_binary_siblings(dest, binary_name)


def install_raw(archive_path: Path, binary_name: str, dest: Path, platform: Platform) -> Path:
    """Install a download that is the binary itself (e.g., an AppImage)."""
    target = dest / binary_name
    shutil.copyfile(archive_path, target)
    make_executable(target, platform)
    return target


def extract(
    spec: DownloadSpec, archive_path: Path, dest: Path, platform: Platform
) -> None:
    """Unpack a downloaded archive into the tool's cache directory.

    Raises:
        ArchiveError: If the archive cannot be read.
        MissingEntryError: If the expected binary is not in the archive.
    """
    logger.debug("Extracting %s (%s) into %s", archive_path.name, spec.archive.value, dest)
    if spec.archive is ArchiveType.RAW:
        install_raw(archive_path, spec.binary_name, dest, platform)
    elif spec.archive is ArchiveType.SEVEN_Z:
        extract_7z_tree(archive_path, dest, spec.binary_name)
    elif spec.archive is ArchiveType.ZIP:
        extract_binary_from_zip(archive_path, spec.binary_name, dest, platform)
    elif spec.hoist_tree:
        extract_tar_tree(archive_path, dest)
    else:
        extract_binary_from_tar(archive_path, spec.binary_name, dest, platform)


def remove_tree(path: Path) -> None:
    """Delete a previous installation directory if present."""
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        os.remove(path)
