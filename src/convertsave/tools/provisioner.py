"""Download and install converter tools into the app-data cache.

Pipeline for one tool:

1. checking: discover the release and build the DownloadSpec
2. delete any previous installation
3. downloading: fetch the archive with a 5-minute timeout
4. extracting: write it to a temp file in the cache dir and unpack it
5. verify the binary exists, record the release in a .version marker
6. complete

On macOS with Homebrew the tool is installed or upgraded through brew
instead. Provisioning the same tool twice concurrently is not supported;
callers serialize per tool.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import httpx

from convertsave.core.subprocess_utils import run_command_async
from convertsave.events import ProgressEmitter, ProgressStatus, null_emitter
from convertsave.exceptions import (
    ConvertSaveError,
    MissingEntryError,
    ProvisionError,
    describe_os_error,
)
from convertsave.tools import archives
from convertsave.tools.models import PROVISIONABLE_TOOLS, ToolId
from convertsave.tools.resolver import BREW_PACKAGES, ToolResolver, brew_has_package, find_brew
from convertsave.tools.sources import create_http_client, download_spec, fetch_bytes

logger = logging.getLogger(__name__)

VERSION_MARKER = ".version"


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of a successful provisioning run."""

    tool: ToolId
    path: Path | None
    version: str | None
    via_package_manager: bool = False

    @property
    def message(self) -> str:
        name = self.tool.display_name
        if self.via_package_manager:
            return f"{name} installed via Homebrew"
        if self.version:
            return f"{name} {self.version} installed successfully"
        return f"{name} installed successfully"


def read_version_marker(cache_dir: Path) -> str | None:
    """Return the release recorded by the last provisioning, if any."""
    marker = cache_dir / VERSION_MARKER
    try:
        value = marker.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return value or None


def write_version_marker(cache_dir: Path, version: str) -> None:
    (cache_dir / VERSION_MARKER).write_text(version + "\n", encoding="utf-8")


class Provisioner:
    """Installs tools for one resolver (platform + data directory).

    Args:
        resolver: Resolver that defines cache locations.
        client_factory: Creates the HTTP client (injected in tests).
    """

    def __init__(
        self,
        resolver: ToolResolver,
        client_factory: Callable[[], httpx.AsyncClient] = create_http_client,
    ) -> None:
        self.resolver = resolver
        self.platform = resolver.platform
        self._client_factory = client_factory

    async def provision(
        self, tool: ToolId, emit: ProgressEmitter = null_emitter
    ) -> ProvisionResult:
        """Download and install a tool, reporting progress through emit.

        The final event is either ``complete`` or ``error``.

        Raises:
            ProvisionError: Download, archive or verification failure.
            FilesystemError: The cache directory could not be written.
            ValueError: If the tool cannot be provisioned.
        """
        if tool not in PROVISIONABLE_TOOLS:
            raise ValueError(f"{tool.display_name} cannot be downloaded automatically")

        name = tool.display_name
        try:
            emit(ProgressStatus.CHECKING, f"Checking for the latest {name} release...")
            brew = find_brew(self.platform)
            if brew is not None and tool in BREW_PACKAGES:
                result = await self._provision_with_brew(tool, brew, emit)
            else:
                result = await self._provision_download(tool, emit)
        except ConvertSaveError as e:
            emit(ProgressStatus.ERROR, str(e))
            raise
        except OSError as e:
            error = describe_os_error(
                e, e.filename or self.resolver.cache_dir(tool), f"install {name} into"
            )
            emit(ProgressStatus.ERROR, str(error))
            raise error from e
        emit(ProgressStatus.COMPLETE, result.message)
        logger.info(result.message)
        return result

    async def _provision_download(
        self, tool: ToolId, emit: ProgressEmitter
    ) -> ProvisionResult:
        name = tool.display_name
        async with self._client_factory() as client:
            spec = await download_spec(tool, self.platform, client)
            logger.debug("Download spec for %s: %s", tool.value, spec)

            cache_dir = self.resolver.cache_dir(tool)
            if cache_dir.exists():
                logger.info("Removing previous %s installation at %s", name, cache_dir)
                await asyncio.to_thread(archives.remove_tree, cache_dir)
            cache_dir.mkdir(parents=True, exist_ok=True)

            label = f"{name} {spec.version}" if spec.version else name
            emit(ProgressStatus.DOWNLOADING, f"Downloading {label}...")
            data = await fetch_bytes(client, spec.url)

        emit(ProgressStatus.EXTRACTING, f"Extracting {name}...")
        with tempfile.NamedTemporaryFile(
            dir=cache_dir, prefix=".download-", suffix=spec.archive.suffix, delete=False
        ) as tmp:
            tmp.write(data)
            archive_path = Path(tmp.name)
        try:
            await asyncio.to_thread(
                archives.extract, spec, archive_path, cache_dir, self.platform
            )
        finally:
            archive_path.unlink(missing_ok=True)

        binary = self.resolver.cache_binary_path(tool)
        if not binary.is_file():
            raise MissingEntryError(
                str(binary.relative_to(cache_dir)), archives.list_tree(cache_dir)
            )
        if spec.version:
            write_version_marker(cache_dir, spec.version)
        return ProvisionResult(tool=tool, path=binary, version=spec.version)

    async def _provision_with_brew(
        self, tool: ToolId, brew: Path, emit: ProgressEmitter
    ) -> ProvisionResult:
        name = tool.display_name
        package = BREW_PACKAGES[tool]
        installed = await asyncio.to_thread(brew_has_package, brew, package)
        if installed:
            emit(ProgressStatus.UPGRADING, f"Upgrading {name} with Homebrew...")
            action = "upgrade"
        else:
            emit(ProgressStatus.INSTALLING, f"Installing {name} with Homebrew...")
            action = "install"

        output = await run_command_async([brew, action, package], platform=self.platform)
        if not output.ok:
            detail = output.stderr.strip().splitlines()[-1:] or ["unknown error"]
            raise ProvisionError(f"Homebrew {action} of {package} failed: {detail[0]}")

        found = self.resolver.find(tool)
        return ProvisionResult(
            tool=tool,
            path=found.path if found else None,
            version=None,
            via_package_manager=True,
        )
