"""Tests for the platform abstraction."""

from pathlib import Path

from convertsave.core.platform import (
    OSFamily,
    Platform,
    enclosing_app_bundle,
    is_inside_app_bundle,
)


class TestPlatform:
    """Tests for Platform properties."""

    def test_exe_name_adds_suffix_on_windows(self, windows_platform, linux_platform):
        assert windows_platform.exe_name("ffmpeg") == "ffmpeg.exe"
        assert linux_platform.exe_name("ffmpeg") == "ffmpeg"

    def test_is_arm(self):
        assert Platform(OSFamily.MACOS, "arm64").is_arm
        assert Platform(OSFamily.LINUX, "aarch64").is_arm
        assert not Platform(OSFamily.MACOS, "x86_64").is_arm

    def test_creation_flags_only_on_windows(self, windows_platform, macos_platform):
        assert windows_platform.creation_flags() == 0x08000000
        assert macos_platform.creation_flags() == 0

    def test_user_data_dir_uses_appdata_on_windows(self, windows_platform):
        env = {"APPDATA": "C:/Users/me/AppData/Roaming"}
        assert windows_platform.user_data_dir(env) == Path(env["APPDATA"])

    def test_user_data_dir_uses_xdg_on_linux(self, linux_platform):
        assert linux_platform.user_data_dir({"XDG_DATA_HOME": "/data"}) == Path("/data")

    def test_user_data_dir_on_macos(self, macos_platform):
        expected = Path.home() / "Library" / "Application Support"
        assert macos_platform.user_data_dir({}) == expected

    def test_windows_reveal_uses_select(self, windows_platform):
        target = Path("C:/out/a.mp3")
        assert windows_platform.file_manager_command(target, reveal=True) == [
            "explorer",
            f"/select,{target}",
        ]


class TestIsInsideAppBundle:
    """Tests for is_inside_app_bundle."""

    def test_detects_own_bundle(self):
        bundle = enclosing_app_bundle(Path("/Applications/ConvertSave.app/Contents/MacOS"))
        assert bundle == Path("/Applications/ConvertSave.app")
        assert is_inside_app_bundle(bundle / "Contents" / "Resources" / "ffmpeg", bundle)

    def test_other_bundle_allowed(self):
        bundle = Path("/Applications/ConvertSave.app")
        soffice = Path("/Applications/LibreOffice.app/Contents/MacOS/soffice")
        assert not is_inside_app_bundle(soffice, bundle)

    def test_no_bundle(self):
        assert enclosing_app_bundle(Path("/usr/local/bin")) is None
        assert not is_inside_app_bundle(Path("/usr/local/bin/ffmpeg"), None)
