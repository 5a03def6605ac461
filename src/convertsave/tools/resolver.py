"""Locate a usable binary for each converter tool.

Search order, first hit wins:

1. User override from config.json (stale entries are cleared)
2. Homebrew on macOS, when the package is installed
3. App-data cache ``{data}/{app_id}/{tool}/[bin/]{exe}``
4. Project-local ``tools/{platform}/`` under the working directory
5. macOS well-known paths (/opt/homebrew/bin, /usr/local/bin)
6. ``tools/{platform}/`` beside the running executable (not macOS)
7. PATH, plus the standard LibreOffice install locations

Nothing inside ConvertSave's own .app bundle is ever probed; other
applications' bundles (LibreOffice.app) are fine.
"""

from __future__ import annotations

import logging
import shutil
import subprocess  # nosec B404 - brew probing
from collections.abc import Callable, Iterator
from pathlib import Path

from convertsave.config.paths import AppPaths
from convertsave.config.tool_config import ToolConfigStore
from convertsave.core.platform import (
    Platform,
    current_platform,
    enclosing_app_bundle,
    is_inside_app_bundle,
    running_executable_dir,
)
from convertsave.core.subprocess_utils import run_command
from convertsave.exceptions import ToolNotFoundError
from convertsave.tools.detection import detect_version
from convertsave.tools.models import ToolId, ToolInstallation, ToolSource

logger = logging.getLogger(__name__)

BREW_CANDIDATES: tuple[Path, ...] = (
    Path("/opt/homebrew/bin/brew"),
    Path("/usr/local/bin/brew"),
)

MACOS_SYSTEM_DIRS: tuple[Path, ...] = (
    Path("/opt/homebrew/bin"),
    Path("/usr/local/bin"),
)

# Homebrew formula per tool; LibreOffice is a cask and is found elsewhere
BREW_PACKAGES: dict[ToolId, str] = {
    ToolId.FFMPEG: "ffmpeg",
    ToolId.IMAGEMAGICK: "imagemagick",
    ToolId.PANDOC: "pandoc",
}

LIBREOFFICE_LOCATIONS: dict[str, tuple[Path, ...]] = {
    "macos": (Path("/Applications/LibreOffice.app/Contents/MacOS/soffice"),),
    "windows": (
        Path("C:/Program Files/LibreOffice/program/soffice.exe"),
        Path("C:/Program Files (x86)/LibreOffice/program/soffice.exe"),
    ),
    "linux": (
        Path("/usr/bin/soffice"),
        Path("/usr/lib/libreoffice/program/soffice"),
        Path("/opt/libreoffice/program/soffice"),
    ),
}

BREW_TIMEOUT = 30


def find_brew(platform: Platform | None = None) -> Path | None:
    """Return the Homebrew binary on macOS, or None."""
    plat = platform or current_platform()
    if not plat.is_macos:
        return None
    for candidate in BREW_CANDIDATES:
        if candidate.is_file():
            return candidate
    return None


def _run_brew(brew: Path, *args: str) -> tuple[str, int]:
    try:
        stdout, _stderr, rc = run_command([brew, *args], timeout=BREW_TIMEOUT)
    except subprocess.TimeoutExpired:
        return "", -1
    return stdout, rc


def brew_has_package(brew: Path, package: str) -> bool:
    """True if Homebrew reports the formula as installed."""
    stdout, rc = _run_brew(brew, "list", "--versions", package)
    return rc == 0 and bool(stdout.strip())


def brew_prefix(brew: Path) -> Path | None:
    stdout, rc = _run_brew(brew, "--prefix")
    if rc != 0 or not stdout.strip():
        return None
    return Path(stdout.strip())


class ToolResolver:
    """Resolves ToolIds to binaries for one platform and data directory.

    Args:
        paths: App data locations (cache directory).
        config_store: Store holding user overrides.
        platform: Platform override for tests.
        cwd: Working directory for project-local tools (defaults to Path.cwd()).
        exe_dir: Directory of the running executable.
        which: PATH lookup function.
    """

    def __init__(
        self,
        paths: AppPaths,
        config_store: ToolConfigStore,
        platform: Platform | None = None,
        cwd: Path | None = None,
        exe_dir: Path | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.paths = paths
        self.config_store = config_store
        self.platform = platform or current_platform()
        self._cwd = cwd
        self._exe_dir = exe_dir
        self._which = which

    @property
    def exe_dir(self) -> Path:
        return self._exe_dir if self._exe_dir is not None else running_executable_dir()

    def exe_name(self, tool: ToolId) -> str:
        return self.platform.exe_name(tool.executable)

    def cache_dir(self, tool: ToolId) -> Path:
        return self.paths.tool_dir(tool.value)

    def cache_binary_path(self, tool: ToolId) -> Path:
        """Where a provisioned binary lives inside the app-data cache.

        ImageMagick on macOS keeps its bin/lib/etc layout, so the binary
        sits under bin/.
        """
        base = self.cache_dir(tool)
        if self.platform.is_macos and tool is ToolId.IMAGEMAGICK:
            base = base / "bin"
        return base / self.exe_name(tool)

    def resolve(self, tool: ToolId, *, with_version: bool = False) -> ToolInstallation:
        """Find a binary for the tool.

        Raises:
            ToolNotFoundError: If no candidate location holds the binary.
        """
        installation = self.find(tool)
        if installation is None:
            raise ToolNotFoundError(tool.display_name)
        if with_version:
            version = detect_version(tool, installation.path, self.platform)
            installation = ToolInstallation(
                tool=installation.tool,
                path=installation.path,
                source=installation.source,
                version=version,
            )
        return installation

    def find(self, tool: ToolId) -> ToolInstallation | None:
        """Like resolve() but returns None instead of raising."""
        if not tool.is_external:
            return None
        own_bundle = enclosing_app_bundle(self.exe_dir)
        for path, source in self._candidates(tool):
            if is_inside_app_bundle(path, own_bundle):
                continue
            if path.is_file():
                logger.debug("Resolved %s to %s (%s)", tool.value, path, source.value)
                return ToolInstallation(tool=tool, path=path, source=source)
        logger.debug("No binary found for %s", tool.value)
        return None

    def _override(self, tool: ToolId) -> Path | None:
        configured = self.config_store.get(tool.value)
        if not configured:
            return None
        path = Path(configured)
        if path.is_file():
            return path
        logger.warning(
            "Custom path for %s no longer exists, clearing: %s", tool.value, path
        )
        self.config_store.clear_path(tool.value)
        return None

    def _brew_binary(self, tool: ToolId) -> Path | None:
        package = BREW_PACKAGES.get(tool)
        if package is None:
            return None
        brew = find_brew(self.platform)
        if brew is None or not brew_has_package(brew, package):
            return None
        prefix = brew_prefix(brew)
        if prefix is None:
            return None
        return prefix / "bin" / self.exe_name(tool)

    def _candidates(self, tool: ToolId) -> Iterator[tuple[Path, ToolSource]]:
        exe = self.exe_name(tool)
        tag = self.platform.tag

        override = self._override(tool)
        if override is not None:
            yield override, ToolSource.OVERRIDE

        if self.platform.is_macos:
            brew_binary = self._brew_binary(tool)
            if brew_binary is not None:
                yield brew_binary, ToolSource.PACKAGE_MANAGER

        yield self.cache_binary_path(tool), ToolSource.APP_CACHE

        cwd = self._cwd if self._cwd is not None else Path.cwd()
        yield cwd / "tools" / tag / exe, ToolSource.PROJECT

        if self.platform.is_macos:
            for directory in MACOS_SYSTEM_DIRS:
                yield directory / exe, ToolSource.SYSTEM
        else:
            yield self.exe_dir / "tools" / tag / exe, ToolSource.PROJECT

        names = [exe]
        if tool is ToolId.LIBREOFFICE and not self.platform.is_windows:
            names.append("libreoffice")
        for name in names:
            found = self._which(name)
            if found:
                yield Path(found), ToolSource.SYSTEM

        if tool is ToolId.LIBREOFFICE:
            for location in LIBREOFFICE_LOCATIONS.get(tag, ()):
                yield location, ToolSource.SYSTEM


def resolve(
    tool: ToolId,
    *,
    paths: AppPaths | None = None,
    config_store: ToolConfigStore | None = None,
    platform: Platform | None = None,
) -> ToolInstallation:
    """Resolve a tool with default paths and config store.

    Raises:
        ToolNotFoundError: If no binary is found.
    """
    paths = paths or AppPaths.from_env(platform=platform)
    store = config_store or ToolConfigStore(paths.config_file)
    return ToolResolver(paths, store, platform=platform).resolve(tool)
