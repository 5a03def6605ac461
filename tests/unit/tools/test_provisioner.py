"""Tests for the provisioner pipeline."""

import io
import tarfile
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from convertsave.config.paths import AppPaths
from convertsave.config.tool_config import ToolConfigStore
from convertsave.core.subprocess_utils import CommandOutput
from convertsave.events import ProgressStatus
from convertsave.exceptions import (
    DownloadError,
    FilesystemError,
    MissingEntryError,
    ProvisionError,
)
from convertsave.tools.models import ToolId
from convertsave.tools.provisioner import (
    Provisioner,
    read_version_marker,
    write_version_marker,
)
from convertsave.tools.resolver import ToolResolver
from convertsave.tools.sources import PANDOC_LATEST_URL, create_http_client

PANDOC_URL = (
    "https://github.com/jgm/pandoc/releases/download/3.6.1/pandoc-3.6.1-linux-amd64.tar.gz"
)


def _pandoc_tarball(binary_name: str = "pandoc") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        data = b"#!/bin/sh\necho pandoc 3.6.1\n"
        info = tarfile.TarInfo(f"pandoc-3.6.1/bin/{binary_name}")
        info.size = len(data)
        tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def _factory(routes: dict[str, httpx.Response]):
    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get(str(request.url), httpx.Response(404))

    return lambda: create_http_client(transport=httpx.MockTransport(handler))


class Recorder:
    """Collects progress events."""

    def __init__(self):
        self.events: list[tuple[ProgressStatus, str]] = []

    def __call__(self, status, message):
        self.events.append((status, message))

    @property
    def statuses(self):
        return [status for status, _ in self.events]


@pytest.fixture
def resolver(temp_dir: Path, linux_platform) -> ToolResolver:
    paths = AppPaths(data_root=temp_dir / "data")
    return ToolResolver(
        paths,
        ToolConfigStore(paths.config_file),
        platform=linux_platform,
        cwd=temp_dir,
        exe_dir=temp_dir,
        which=lambda name: None,
    )


class TestProvisioner:
    """Tests for Provisioner.provision."""

    @pytest.mark.asyncio
    async def test_downloads_extracts_and_marks_version(self, resolver):
        routes = {
            PANDOC_LATEST_URL: httpx.Response(200, json={"tag_name": "3.6.1"}),
            PANDOC_URL: httpx.Response(200, content=_pandoc_tarball()),
        }
        recorder = Recorder()

        result = await Provisioner(resolver, _factory(routes)).provision(
            ToolId.PANDOC, recorder
        )

        cache_dir = resolver.cache_dir(ToolId.PANDOC)
        assert result.path == cache_dir / "pandoc"
        assert result.path.is_file()
        assert read_version_marker(cache_dir) == "3.6.1"
        assert recorder.statuses == [
            ProgressStatus.CHECKING,
            ProgressStatus.DOWNLOADING,
            ProgressStatus.EXTRACTING,
            ProgressStatus.COMPLETE,
        ]
        assert recorder.events[-1][1] == "Pandoc 3.6.1 installed successfully"
        assert not list(cache_dir.glob(".download-*"))

    @pytest.mark.asyncio
    async def test_replaces_previous_installation(self, resolver):
        cache_dir = resolver.cache_dir(ToolId.PANDOC)
        cache_dir.mkdir(parents=True)
        (cache_dir / "stale.txt").write_text("old")
        routes = {
            PANDOC_LATEST_URL: httpx.Response(200, json={"tag_name": "3.6.1"}),
            PANDOC_URL: httpx.Response(200, content=_pandoc_tarball()),
        }

        await Provisioner(resolver, _factory(routes)).provision(ToolId.PANDOC)

        assert not (cache_dir / "stale.txt").exists()

    @pytest.mark.asyncio
    async def test_download_failure_emits_error(self, resolver):
        routes = {PANDOC_LATEST_URL: httpx.Response(200, json={"tag_name": "3.6.1"})}
        recorder = Recorder()

        with pytest.raises(DownloadError):
            await Provisioner(resolver, _factory(routes)).provision(
                ToolId.PANDOC, recorder
            )

        assert recorder.statuses[-1] is ProgressStatus.ERROR
        assert "HTTP 404" in recorder.events[-1][1]

    @pytest.mark.asyncio
    async def test_unwritable_cache_emits_error(self, resolver):
        app_dir = resolver.paths.app_dir
        app_dir.parent.mkdir(parents=True, exist_ok=True)
        app_dir.write_text("not a directory")
        routes = {
            PANDOC_LATEST_URL: httpx.Response(200, json={"tag_name": "3.6.1"}),
            PANDOC_URL: httpx.Response(200, content=_pandoc_tarball()),
        }
        recorder = Recorder()

        with pytest.raises(FilesystemError, match="install Pandoc into"):
            await Provisioner(resolver, _factory(routes)).provision(
                ToolId.PANDOC, recorder
            )

        assert recorder.statuses == [ProgressStatus.CHECKING, ProgressStatus.ERROR]
        assert "install Pandoc into" in recorder.events[-1][1]

    @pytest.mark.asyncio
    async def test_missing_binary_in_archive(self, resolver):
        routes = {
            PANDOC_LATEST_URL: httpx.Response(200, json={"tag_name": "3.6.1"}),
            PANDOC_URL: httpx.Response(200, content=_pandoc_tarball("pandoc-server")),
        }
        with pytest.raises(MissingEntryError):
            await Provisioner(resolver, _factory(routes)).provision(ToolId.PANDOC)

    @pytest.mark.asyncio
    async def test_libreoffice_rejected(self, resolver):
        with pytest.raises(ValueError):
            await Provisioner(resolver, _factory({})).provision(ToolId.LIBREOFFICE)

    @pytest.mark.asyncio
    async def test_homebrew_upgrade(self, resolver):
        recorder = Recorder()
        with patch(
            "convertsave.tools.provisioner.find_brew", return_value=Path("/opt/homebrew/bin/brew")
        ), patch(
            "convertsave.tools.provisioner.brew_has_package", return_value=True
        ), patch(
            "convertsave.tools.provisioner.run_command_async",
            AsyncMock(return_value=CommandOutput("", "", 0)),
        ) as mock_run:
            result = await Provisioner(resolver, _factory({})).provision(
                ToolId.FFMPEG, recorder
            )

        assert result.via_package_manager
        assert mock_run.call_args[0][0] == [
            Path("/opt/homebrew/bin/brew"),
            "upgrade",
            "ffmpeg",
        ]
        assert ProgressStatus.UPGRADING in recorder.statuses
        assert recorder.events[-1] == (
            ProgressStatus.COMPLETE,
            "FFmpeg installed via Homebrew",
        )

    @pytest.mark.asyncio
    async def test_homebrew_failure(self, resolver):
        with patch(
            "convertsave.tools.provisioner.find_brew", return_value=Path("/usr/local/bin/brew")
        ), patch(
            "convertsave.tools.provisioner.brew_has_package", return_value=False
        ), patch(
            "convertsave.tools.provisioner.run_command_async",
            AsyncMock(return_value=CommandOutput("", "Error: no bottle\n", 1)),
        ):
            with pytest.raises(ProvisionError, match="Homebrew install of pandoc failed: Error: no bottle"):
                await Provisioner(resolver, _factory({})).provision(ToolId.PANDOC)


def test_version_marker_round_trip(temp_dir: Path):
    assert read_version_marker(temp_dir) is None
    write_version_marker(temp_dir, "autobuild-2024-11-30-12-51")
    assert read_version_marker(temp_dir) == "autobuild-2024-11-30-12-51"
