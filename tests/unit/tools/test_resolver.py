"""Tests for ToolResolver search order."""

import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from convertsave.config.paths import AppPaths
from convertsave.config.tool_config import ToolConfigStore
from convertsave.exceptions import ToolNotFoundError
from convertsave.tools.models import ToolId, ToolSource
from convertsave.tools.resolver import ToolResolver


def _make_binary(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@pytest.fixture
def paths(temp_dir: Path) -> AppPaths:
    return AppPaths(data_root=temp_dir / "data")


@pytest.fixture
def store(paths: AppPaths) -> ToolConfigStore:
    return ToolConfigStore(paths.config_file)


@pytest.fixture
def make_resolver(paths, store, temp_dir, linux_platform):
    def _make(platform=linux_platform, which=lambda name: None, exe_dir=None):
        return ToolResolver(
            paths,
            store,
            platform=platform,
            cwd=temp_dir / "cwd",
            exe_dir=exe_dir or temp_dir / "exe",
            which=which,
        )

    return _make


class TestToolResolver:
    """Tests for ToolResolver.find/resolve."""

    def test_not_found_raises(self, make_resolver):
        with pytest.raises(ToolNotFoundError, match="FFmpeg is not installed"):
            make_resolver().resolve(ToolId.FFMPEG)

    def test_rename_never_resolves(self, make_resolver):
        assert make_resolver().find(ToolId.RENAME) is None

    def test_override_wins(self, make_resolver, store, paths, temp_dir):
        custom = _make_binary(temp_dir / "custom" / "ffmpeg")
        _make_binary(paths.tool_dir("ffmpeg") / "ffmpeg")
        store.set_path("ffmpeg", str(custom))

        found = make_resolver().find(ToolId.FFMPEG)

        assert found.path == custom
        assert found.source is ToolSource.OVERRIDE

    def test_stale_override_is_cleared(self, make_resolver, store, temp_dir):
        store.set_path("pandoc", str(temp_dir / "gone" / "pandoc"))

        assert make_resolver().find(ToolId.PANDOC) is None
        assert store.get("pandoc") is None

    def test_app_cache_before_project(self, make_resolver, paths, temp_dir):
        cached = _make_binary(paths.tool_dir("pandoc") / "pandoc")
        _make_binary(temp_dir / "cwd" / "tools" / "linux" / "pandoc")

        found = make_resolver().find(ToolId.PANDOC)

        assert found.path == cached
        assert found.source is ToolSource.APP_CACHE

    def test_project_local_tools(self, make_resolver, temp_dir):
        local = _make_binary(temp_dir / "cwd" / "tools" / "linux" / "ffmpeg")
        assert make_resolver().find(ToolId.FFMPEG).path == local

    def test_beside_executable(self, make_resolver, temp_dir):
        bundled = _make_binary(temp_dir / "exe" / "tools" / "linux" / "ffmpeg")
        found = make_resolver().find(ToolId.FFMPEG)
        assert found.path == bundled
        assert found.source is ToolSource.PROJECT

    def test_windows_exe_names(self, make_resolver, paths, windows_platform):
        cached = _make_binary(paths.tool_dir("ffmpeg") / "ffmpeg.exe")
        assert make_resolver(platform=windows_platform).find(ToolId.FFMPEG).path == cached

    def test_macos_imagemagick_cache_uses_bin(self, make_resolver, paths, macos_platform):
        resolver = make_resolver(platform=macos_platform)
        expected = paths.tool_dir("imagemagick") / "bin" / "magick"
        assert resolver.cache_binary_path(ToolId.IMAGEMAGICK) == expected

    def test_path_lookup(self, make_resolver, temp_dir):
        on_path = _make_binary(temp_dir / "usr" / "bin" / "magick")
        resolver = make_resolver(which=lambda name: str(on_path) if name == "magick" else None)

        found = resolver.find(ToolId.IMAGEMAGICK)

        assert found.path == on_path
        assert found.source is ToolSource.SYSTEM

    def test_libreoffice_alias_on_path(self, make_resolver, temp_dir):
        binary = _make_binary(temp_dir / "usr" / "bin" / "libreoffice")
        resolver = make_resolver(
            which=lambda name: str(binary) if name == "libreoffice" else None
        )
        with patch("convertsave.tools.resolver.LIBREOFFICE_LOCATIONS", {}):
            assert resolver.find(ToolId.LIBREOFFICE).path == binary

    def test_own_app_bundle_is_skipped(self, make_resolver, temp_dir):
        bundle = temp_dir / "ConvertSave.app"
        inside = _make_binary(bundle / "Contents" / "Resources" / "ffmpeg")
        resolver = make_resolver(
            which=lambda name: str(inside), exe_dir=bundle / "Contents" / "MacOS"
        )
        assert resolver.find(ToolId.FFMPEG) is None

    def test_libreoffice_app_on_macos(self, make_resolver, temp_dir, macos_platform):
        soffice = _make_binary(
            temp_dir / "Applications" / "LibreOffice.app" / "Contents" / "MacOS" / "soffice"
        )
        resolver = make_resolver(
            platform=macos_platform,
            exe_dir=temp_dir / "ConvertSave.app" / "Contents" / "MacOS",
        )
        with patch(
            "convertsave.tools.resolver.LIBREOFFICE_LOCATIONS", {"macos": (soffice,)}
        ), patch("convertsave.tools.resolver.MACOS_SYSTEM_DIRS", ()):
            found = resolver.find(ToolId.LIBREOFFICE)

        assert found.path == soffice
        assert found.source is ToolSource.SYSTEM

    def test_override_inside_other_app_bundle(
        self, make_resolver, store, temp_dir, macos_platform
    ):
        soffice = _make_binary(
            temp_dir / "LibreOffice.app" / "Contents" / "MacOS" / "soffice"
        )
        store.set_path("libreoffice", str(soffice))
        resolver = make_resolver(
            platform=macos_platform,
            exe_dir=temp_dir / "ConvertSave.app" / "Contents" / "MacOS",
        )

        found = resolver.find(ToolId.LIBREOFFICE)

        assert found.path == soffice
        assert found.source is ToolSource.OVERRIDE

    def test_resolve_with_version(self, make_resolver, paths):
        _make_binary(paths.tool_dir("ffmpeg") / "ffmpeg")
        with patch("convertsave.tools.resolver.detect_version", return_value="7.1"):
            installation = make_resolver().resolve(ToolId.FFMPEG, with_version=True)
        assert installation.version == "7.1"

    def test_brew_binary_on_macos(self, make_resolver, temp_dir, macos_platform):
        brew_bin = _make_binary(temp_dir / "brew" / "bin" / "ffmpeg")
        resolver = make_resolver(platform=macos_platform)
        with patch(
            "convertsave.tools.resolver.find_brew", return_value=Path("/opt/homebrew/bin/brew")
        ), patch(
            "convertsave.tools.resolver.brew_has_package", return_value=True
        ), patch(
            "convertsave.tools.resolver.brew_prefix", return_value=temp_dir / "brew"
        ):
            found = resolver.find(ToolId.FFMPEG)

        assert found.path == brew_bin
        assert found.source is ToolSource.PACKAGE_MANAGER
