"""Tests for the click commands, with an injected CommandContext."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from convertsave.cli.convert import (
    convert_command,
    formats_command,
    info_command,
    merge_pdf_command,
)
from convertsave.cli.exit_codes import ExitCode
from convertsave.cli.license import license_group
from convertsave.cli.tools import tools_group
from convertsave.exceptions import LicenseError
from convertsave.license.models import LicenseStatus, PlanType
from convertsave.tools.models import ToolId, ToolInstallation, ToolSource


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner, command, args, command_context):
    return runner.invoke(command, args, obj={"command_context": command_context})


class TestFormatsCommand:
    """Tests for `convertsave formats`."""

    def test_text(self, runner, command_context):
        result = _invoke(runner, formats_command, ["mp4"], command_context)
        assert result.exit_code == 0
        assert "mp3" in result.output

    def test_json(self, runner, command_context):
        result = _invoke(runner, formats_command, [".WAV", "--format", "json"], command_context)
        assert result.exit_code == 0
        options = json.loads(result.output)
        assert {"format", "tool", "display_name", "color"} <= set(options[0])
        assert "mp3" in [o["format"] for o in options]

    def test_unknown_extension(self, runner, command_context):
        result = _invoke(runner, formats_command, ["xyz"], command_context)
        assert result.exit_code == 0
        assert "No conversions available for 'xyz'" in result.output


class TestConvertCommand:
    """Tests for `convertsave convert` and `merge-pdf`."""

    def test_unsupported_exit_code(self, runner, command_context, temp_dir):
        src = temp_dir / "clip.mp4"
        src.write_bytes(b"data")
        result = _invoke(runner, convert_command, [str(src), "--to", "docx"], command_context)
        assert result.exit_code == ExitCode.UNSUPPORTED_CONVERSION
        assert "not supported" in result.output

    def test_tool_not_found_exit_code(self, runner, command_context, temp_dir):
        src = temp_dir / "clip.mp4"
        src.write_bytes(b"data")
        result = _invoke(
            runner, convert_command, [str(src), "-t", "mp3", "-o", str(temp_dir)], command_context
        )
        assert result.exit_code == ExitCode.TOOL_NOT_FOUND
        assert "FFmpeg is not installed" in result.output

    def test_rename_succeeds(self, runner, command_context, temp_dir):
        src = temp_dir / "photo.jpg"
        src.write_bytes(b"\xff\xd8")
        out_dir = temp_dir / "out"
        result = _invoke(
            runner, convert_command, [str(src), "-t", "jpeg", "-o", str(out_dir)], command_context
        )
        assert result.exit_code == 0
        assert result.output.strip() == str(out_dir / "photo.jpeg")

    def test_merge_pdf_missing_input(self, runner, command_context, temp_dir):
        result = _invoke(
            runner, merge_pdf_command, [str(temp_dir / "missing.png")], command_context
        )
        assert result.exit_code == ExitCode.FILESYSTEM_ERROR


class TestInfoCommand:
    """Tests for `convertsave info`."""

    def test_text(self, runner, command_context, temp_dir):
        path = temp_dir / "song.FLAC"
        path.write_bytes(b"x" * 2048)
        result = _invoke(runner, info_command, [str(path)], command_context)
        assert result.exit_code == 0
        assert "song.FLAC" in result.output
        assert "Extension: flac" in result.output

    def test_json(self, runner, command_context, temp_dir):
        path = temp_dir / "notes.txt"
        path.write_text("abc", encoding="utf-8")
        result = _invoke(runner, info_command, [str(path), "--format", "json"], command_context)
        assert json.loads(result.output) == {"name": "notes.txt", "size": 3, "extension": "txt"}


class TestToolsCommands:
    """Tests for `convertsave tools`."""

    def test_status_json(self, runner, command_context):
        command_context.resolver.find.side_effect = lambda tool: (
            ToolInstallation(tool, Path("/usr/bin/ffmpeg"), ToolSource.SYSTEM)
            if tool is ToolId.FFMPEG
            else None
        )
        result = _invoke(runner, tools_group, ["status", "--format", "json"], command_context)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ffmpeg"] == {"available": True, "path": "/usr/bin/ffmpeg"}
        assert data["pandoc"]["available"] is False

    def test_set_and_clear_path(self, runner, command_context, temp_dir):
        binary = temp_dir / "pandoc"
        binary.write_bytes(b"")

        result = _invoke(runner, tools_group, ["set-path", "pandoc", str(binary)], command_context)
        assert result.exit_code == 0
        assert command_context.config_store.get("pandoc") == str(binary.resolve())

        result = _invoke(runner, tools_group, ["clear-path", "pandoc"], command_context)
        assert result.exit_code == 0
        assert command_context.config_store.get("pandoc") is None

    def test_download_rejects_unknown_tool(self, runner, command_context):
        result = _invoke(runner, tools_group, ["download", "gimp"], command_context)
        assert result.exit_code == 2


class TestLicenseCommands:
    """Tests for `convertsave license`."""

    def test_status_valid(self, runner, command_context):
        command_context.license_gate.check_status.return_value = LicenseStatus(
            is_valid=True, is_activated=True, plan_type=PlanType.YEARLY, days_remaining=120
        )
        result = _invoke(runner, license_group, ["status"], command_context)
        assert result.exit_code == 0
        assert "Licensed (yearly plan), 120 day(s) remaining" in result.output

    def test_status_grace(self, runner, command_context):
        command_context.license_gate.check_status.return_value = LicenseStatus(
            is_valid=True,
            is_activated=True,
            plan_type=PlanType.MONTHLY,
            days_remaining=-1,
            in_grace_period=True,
        )
        result = _invoke(runner, license_group, ["status"], command_context)
        assert "expired 1 day(s) ago, in grace period" in result.output

    def test_status_json(self, runner, command_context):
        command_context.license_gate.check_status.return_value = LicenseStatus.needs_activation()
        result = _invoke(runner, license_group, ["status", "--format", "json"], command_context)
        data = json.loads(result.output)
        assert data["requiresActivation"] is True
        assert data["isValid"] is False

    def test_activate_failure(self, runner, command_context):
        command_context.license_gate.activate.side_effect = LicenseError("Invalid product key")
        result = _invoke(
            runner, license_group, ["activate", "BAD", "--format", "json"], command_context
        )
        assert result.exit_code == ExitCode.LICENSE_ERROR
        assert '"code": "LICENSE_ERROR"' in result.output

    def test_product_key_none(self, runner, command_context):
        command_context.license_gate.current_product_key.return_value = None
        result = _invoke(runner, license_group, ["product-key"], command_context)
        assert result.output.strip() == "No license stored"
