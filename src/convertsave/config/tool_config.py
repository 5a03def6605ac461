"""User overrides for converter binary locations.

The overrides live in ``config.json`` inside the app directory using the
camelCase keys the desktop shell reads: ``ffmpegPath``, ``pandocPath``,
``imagemagickPath`` and ``libreofficePath``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from convertsave.exceptions import describe_os_error

logger = logging.getLogger(__name__)


class ToolConfig(BaseModel):
    """Optional absolute path per tool."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ffmpeg_path: str | None = Field(default=None, alias="ffmpegPath")
    pandoc_path: str | None = Field(default=None, alias="pandocPath")
    imagemagick_path: str | None = Field(default=None, alias="imagemagickPath")
    libreoffice_path: str | None = Field(default=None, alias="libreofficePath")

    def get(self, tool: str) -> str | None:
        """Return the override for a tool id, or None."""
        return getattr(self, f"{tool}_path", None)

    def set(self, tool: str, path: str | None) -> None:
        """Set or clear the override for a tool id.

        Raises:
            KeyError: If the tool has no override slot.
        """
        attr = f"{tool}_path"
        if attr not in type(self).model_fields:
            raise KeyError(tool)
        setattr(self, attr, path)


class ToolConfigStore:
    """Loads and saves ToolConfig.

    Writes go through a temp file and os.replace; concurrent writers are
    last-writer-wins.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> ToolConfig:
        """Read the config file.

        A missing, unreadable or invalid file yields an empty ToolConfig.
        """
        if not self.path.exists():
            return ToolConfig()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable tool config %s: %s", self.path, e)
            return ToolConfig()
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed tool config %s", self.path)
            return ToolConfig()
        try:
            return ToolConfig.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring invalid tool config %s: %s", self.path, e)
            return ToolConfig()

    def save(self, config: ToolConfig) -> None:
        """Persist the config atomically.

        Raises:
            FilesystemError: If the file cannot be written.
        """
        payload = config.model_dump(by_alias=True, exclude_none=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=".config-", suffix=".json"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise describe_os_error(e, self.path, "write") from e
        logger.debug("Saved tool config to %s", self.path)

    def get(self, tool: str) -> str | None:
        return self.load().get(tool)

    def set_path(self, tool: str, path: str) -> None:
        config = self.load()
        config.set(tool, path)
        self.save(config)
        logger.info("Custom path for %s set to %s", tool, path)

    def clear_path(self, tool: str) -> None:
        config = self.load()
        if config.get(tool) is None:
            return
        config.set(tool, None)
        self.save(config)
        logger.info("Custom path for %s cleared", tool)
