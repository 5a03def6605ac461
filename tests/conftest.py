"""Shared test fixtures for ConvertSave."""

import shutil
import tempfile
from pathlib import Path

import pytest

from convertsave.core.platform import OSFamily, Platform


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def linux_platform() -> Platform:
    """Platform describing a Linux x86_64 host."""
    return Platform(family=OSFamily.LINUX, machine="x86_64")


@pytest.fixture
def macos_platform() -> Platform:
    """Platform describing an Apple Silicon Mac."""
    return Platform(family=OSFamily.MACOS, machine="arm64")


@pytest.fixture
def windows_platform() -> Platform:
    """Platform describing a Windows x64 host."""
    return Platform(family=OSFamily.WINDOWS, machine="AMD64")


@pytest.fixture
def command_context(temp_dir, linux_platform):
    """CommandContext with a mocked resolver and license gate.

    The resolver finds no tools until a test configures ``find``.
    """
    from unittest.mock import MagicMock

    from convertsave.commands import CommandContext
    from convertsave.config.models import AppSettings
    from convertsave.config.paths import AppPaths
    from convertsave.config.tool_config import ToolConfigStore
    from convertsave.license.gate import LicenseGate
    from convertsave.tools.resolver import ToolResolver

    paths = AppPaths(data_root=temp_dir / "data")
    resolver = MagicMock(spec=ToolResolver)
    resolver.find.return_value = None
    resolver.cache_dir.side_effect = lambda tool: paths.tool_dir(tool.value)
    return CommandContext(
        paths=paths,
        settings=AppSettings(),
        platform=linux_platform,
        config_store=ToolConfigStore(paths.config_file),
        resolver=resolver,
        license_gate=MagicMock(spec=LicenseGate),
    )
