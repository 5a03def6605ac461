"""Data models for external converter tools."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ToolId(Enum):
    """External converter categories.

    RENAME is a pseudo tool: a plain file copy for formats that differ only
    by extension spelling (jpg/jpeg).
    """

    FFMPEG = "ffmpeg"
    IMAGEMAGICK = "imagemagick"
    PANDOC = "pandoc"
    LIBREOFFICE = "libreoffice"
    RENAME = "rename"

    @property
    def is_external(self) -> bool:
        return self is not ToolId.RENAME

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def executable(self) -> str:
        """Executable base name (without .exe)."""
        return _EXECUTABLES[self]

    @classmethod
    def parse(cls, value: str) -> ToolId:
        """Parse a tool name, accepting a few common aliases.

        Raises:
            ValueError: If the name is not a known tool.
        """
        key = value.strip().lower()
        key = _ALIASES.get(key, key)
        return cls(key)


_DISPLAY_NAMES = {
    ToolId.FFMPEG: "FFmpeg",
    ToolId.IMAGEMAGICK: "ImageMagick",
    ToolId.PANDOC: "Pandoc",
    ToolId.LIBREOFFICE: "LibreOffice",
    ToolId.RENAME: "Rename",
}

_EXECUTABLES = {
    ToolId.FFMPEG: "ffmpeg",
    ToolId.IMAGEMAGICK: "magick",
    ToolId.PANDOC: "pandoc",
    ToolId.LIBREOFFICE: "soffice",
    ToolId.RENAME: "",
}

_ALIASES = {
    "magick": "imagemagick",
    "soffice": "libreoffice",
}

# Tools the app can download and keep up to date itself
PROVISIONABLE_TOOLS: tuple[ToolId, ...] = (
    ToolId.FFMPEG,
    ToolId.PANDOC,
    ToolId.IMAGEMAGICK,
)

# Tools reported by status checks
STATUS_TOOLS: tuple[ToolId, ...] = (
    ToolId.FFMPEG,
    ToolId.PANDOC,
    ToolId.IMAGEMAGICK,
)


class ToolSource(Enum):
    """Where a resolved tool binary came from."""

    OVERRIDE = "override"
    PACKAGE_MANAGER = "package-manager"
    APP_CACHE = "app-cache"
    PROJECT = "project"
    SYSTEM = "system"


@dataclass(frozen=True)
class ToolInstallation:
    """A resolved tool binary.

    Recomputed on every resolution; the path pointed at an existing regular
    file when the record was created.
    """

    tool: ToolId
    path: Path
    source: ToolSource
    version: str | None = None


@dataclass(frozen=True)
class ToolStatus:
    """Availability of one tool, as shown by check_tools_status."""

    available: bool
    path: str | None = None

    def to_dict(self) -> dict:
        return {"available": self.available, "path": self.path}
