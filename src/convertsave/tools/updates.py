"""Compare installed tool versions against the latest upstream releases."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from convertsave.exceptions import DownloadError
from convertsave.tools.detection import detect_version, parse_version_string
from convertsave.tools.models import PROVISIONABLE_TOOLS, ToolId, ToolSource
from convertsave.tools.provisioner import read_version_marker
from convertsave.tools.resolver import ToolResolver
from convertsave.tools.sources import create_http_client, latest_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateInfo:
    """Update state of one tool."""

    installed: bool
    current_version: str | None = None
    update_available: bool = False
    latest_version: str | None = None

    def to_dict(self) -> dict:
        return {
            "installed": self.installed,
            "currentVersion": self.current_version,
            "updateAvailable": self.update_available,
            "latestVersion": self.latest_version,
        }


def _comparable(version: str) -> tuple[int, ...] | None:
    # ImageMagick patch levels ("7.1.1-39") take part in the comparison
    return parse_version_string(version.replace("-", "."))


def is_update_available(
    current: str | None, latest: str | None, *, exact_match: bool
) -> bool:
    """Decide whether latest supersedes current.

    Args:
        current: Installed version or release identifier.
        latest: Newest upstream release identifier.
        exact_match: True when current came from the .version marker and so
            uses the same identifier scheme as latest; any difference then
            counts as an update.
    """
    if not current or not latest or current == latest:
        return False
    if exact_match:
        return True
    current_tuple = _comparable(current)
    latest_tuple = _comparable(latest)
    if current_tuple is None or latest_tuple is None:
        return False
    return latest_tuple > current_tuple


class UpdateChecker:
    """Checks every provisionable tool for a newer release."""

    def __init__(
        self,
        resolver: ToolResolver,
        client_factory: Callable[[], httpx.AsyncClient] = create_http_client,
    ) -> None:
        self.resolver = resolver
        self._client_factory = client_factory

    async def check(self) -> dict[str, UpdateInfo]:
        results: dict[str, UpdateInfo] = {}
        async with self._client_factory() as client:
            for tool in PROVISIONABLE_TOOLS:
                results[tool.value] = await self._check_tool(tool, client)
        return results

    async def _current_version(self, tool: ToolId) -> tuple[bool, str | None, bool]:
        installation = await asyncio.to_thread(self.resolver.find, tool)
        if installation is None:
            return False, None, False
        if installation.source is ToolSource.APP_CACHE:
            marker = read_version_marker(self.resolver.cache_dir(tool))
            if marker is not None:
                return True, marker, True
        version = await asyncio.to_thread(
            detect_version, tool, installation.path, self.resolver.platform
        )
        return True, version, False

    async def _check_tool(self, tool: ToolId, client: httpx.AsyncClient) -> UpdateInfo:
        installed, current, from_marker = await self._current_version(tool)
        try:
            latest = await latest_version(tool, client)
        except DownloadError as e:
            logger.warning("Could not check %s for updates: %s", tool.display_name, e)
            latest = None
        return UpdateInfo(
            installed=installed,
            current_version=current,
            update_available=installed
            and is_update_available(current, latest, exact_match=from_marker),
            latest_version=latest,
        )


async def check_for_updates(
    resolver: ToolResolver,
    client_factory: Callable[[], httpx.AsyncClient] = create_http_client,
) -> dict[str, UpdateInfo]:
    """Check ffmpeg, pandoc and imagemagick for updates."""
    return await UpdateChecker(resolver, client_factory).check()
