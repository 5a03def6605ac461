"""Thin platform abstraction.

All OS-specific branching (executable names, download platform tags,
console hiding, data directories, file manager commands) lives here so
the rest of the package can stay platform-neutral.
"""

from __future__ import annotations

import os
import platform as _platform
import subprocess  # nosec B404 - needed for creation flag constants
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class OSFamily(Enum):
    """Operating system family."""

    MACOS = "macos"
    WINDOWS = "windows"
    LINUX = "linux"


@dataclass(frozen=True)
class Platform:
    """Description of the host platform.

    Instances are immutable; tests construct them directly to exercise
    platform-specific behavior on any host.
    """

    family: OSFamily
    machine: str = "x86_64"

    @property
    def is_macos(self) -> bool:
        return self.family is OSFamily.MACOS

    @property
    def is_windows(self) -> bool:
        return self.family is OSFamily.WINDOWS

    @property
    def is_linux(self) -> bool:
        return self.family is OSFamily.LINUX

    @property
    def is_arm(self) -> bool:
        return self.machine.lower() in ("arm64", "aarch64")

    @property
    def tag(self) -> str:
        """Directory tag used under tools/ (e.g., "macos", "windows")."""
        return self.family.value

    def exe_name(self, base: str) -> str:
        """Return the executable file name for a binary base name."""
        return f"{base}.exe" if self.is_windows else base

    def creation_flags(self) -> int:
        """Return subprocess creation flags that suppress console windows."""
        if self.is_windows:
            return getattr(subprocess, "CREATE_NO_WINDOW", 0x08000000)
        return 0

    def user_data_dir(self, env: dict[str, str] | None = None) -> Path:
        """Return the per-user application data root.

        Args:
            env: Optional environment mapping (defaults to os.environ).

        Returns:
            ~/Library/Application Support on macOS, %APPDATA% on Windows,
            $XDG_DATA_HOME or ~/.local/share elsewhere.
        """
        environ = env if env is not None else os.environ
        home = Path.home()
        if self.is_macos:
            return home / "Library" / "Application Support"
        if self.is_windows:
            appdata = environ.get("APPDATA")
            return Path(appdata) if appdata else home / "AppData" / "Roaming"
        xdg = environ.get("XDG_DATA_HOME")
        return Path(xdg) if xdg else home / ".local" / "share"

    def documents_dir(self) -> Path:
        """Return the user's Documents directory."""
        return Path.home() / "Documents"

    def file_manager_command(self, target: Path, reveal: bool) -> list[str]:
        """Build the command that opens a folder (or reveals a file).

        Args:
            target: Folder to open or file to reveal.
            reveal: If True and supported, select the file in the manager.

        Returns:
            Argument vector for the platform's file manager.
        """
        if self.is_macos:
            return ["open", "-R", str(target)] if reveal else ["open", str(target)]
        if self.is_windows:
            if reveal:
                return ["explorer", f"/select,{target}"]
            return ["explorer", str(target)]
        folder = target.parent if reveal else target
        return ["xdg-open", str(folder)]


def _detect_family() -> OSFamily:
    if sys.platform == "darwin":
        return OSFamily.MACOS
    if sys.platform.startswith("win"):
        return OSFamily.WINDOWS
    return OSFamily.LINUX


def current_platform() -> Platform:
    """Return the Platform describing the running host."""
    return Platform(family=_detect_family(), machine=_platform.machine() or "x86_64")


def running_executable_dir() -> Path:
    """Return the directory containing the running executable.

    For frozen builds this is the bundle's executable; otherwise the
    interpreter's directory.
    """
    return Path(sys.executable).resolve().parent


def enclosing_app_bundle(path: Path) -> Path | None:
    """Nearest ``*.app`` directory containing path (or path itself), if any."""
    for candidate in (path, *path.parents):
        if candidate.suffix == ".app":
            return candidate
    return None


def is_inside_app_bundle(path: Path, bundle: Path | None) -> bool:
    """Check whether path lies inside the given .app bundle.

    Other applications' bundles, such as LibreOffice.app, do not count.
    """
    if bundle is None:
        return False
    return path == bundle or bundle in path.parents
