"""Tests for CLI output helpers."""

import json

import pytest

from convertsave.cli.exit_codes import ExitCode
from convertsave.cli.output import error_exit, exit_code_for
from convertsave.commands import CommandError
from convertsave.exceptions import ConversionError, DownloadError, ToolNotFoundError


def _wrapped(cause: Exception) -> CommandError:
    try:
        raise CommandError(str(cause)) from cause
    except CommandError as e:
        return e


class TestExitCodeFor:
    """Tests for exit_code_for."""

    def test_uses_cause(self):
        assert exit_code_for(_wrapped(ToolNotFoundError("FFmpeg", "hint"))) == ExitCode.TOOL_NOT_FOUND
        assert exit_code_for(_wrapped(ConversionError("bad"))) == ExitCode.CONVERSION_FAILED

    def test_download_error_is_provision_failure(self):
        error = DownloadError("https://example.com/x.zip", "connect", "boom")
        assert exit_code_for(_wrapped(error)) == ExitCode.DOWNLOAD_FAILED

    def test_plain_command_error(self):
        assert exit_code_for(CommandError("No images selected")) == ExitCode.GENERAL_ERROR


class TestErrorExit:
    """Tests for error_exit."""

    def test_text(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            error_exit("it broke", ExitCode.CONVERSION_FAILED)
        assert exc_info.value.code == 5
        assert capsys.readouterr().err == "Error: it broke\n"

    def test_json(self, capsys):
        with pytest.raises(SystemExit):
            error_exit("it broke", ExitCode.FILESYSTEM_ERROR, json_output=True)
        payload = json.loads(capsys.readouterr().err)
        assert payload == {
            "status": "failed",
            "error": {"code": "FILESYSTEM_ERROR", "message": "it broke"},
        }
